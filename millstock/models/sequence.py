"""
DocumentSequence model — monotonic counters for document and entry numbers.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class DocumentSequence(models.Model):
    """
    Last number handed out for a (scope, period).

    Examples:
        scope='OUT:WH1',  period='2026-10'  → OUT/WH1/0007/10/2026
        scope='JV:PKS',   period='2026-10'  → JV/2026/10/0042

    Rows are never deleted, so numbers are never reused even when the
    document that consumed them is.
    """

    scope = models.CharField(max_length=80)
    period = models.CharField(max_length=10)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Document sequence')
        verbose_name_plural = _('Document sequences')
        constraints = [
            models.UniqueConstraint(fields=['scope', 'period'], name='unique_sequence_scope_period'),
        ]

    def __str__(self) -> str:
        return f"{self.scope}@{self.period}: {self.last_value}"
