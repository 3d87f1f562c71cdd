# backend/fundmonitor/services/performance/bucketing.py
"""
Top-N display with high-MOIC exceptions and a long-tail row.

Given positions already sorted for display (by cost or by total MV):
1. The first N positions are shown
2. Any remaining position with MOIC >= threshold is shown too, flagged
   is_high_moic_exception, so a large winner is never hidden in the tail
3. Everything else collapses into ONE long-tail row

N = 0 means "show all": no bucketing and no long-tail row.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal

from fundmonitor.services.constants import (
    ZERO,
    DEFAULT_HIGH_MOIC_THRESHOLD,
    LONG_TAIL_LABEL_TEMPLATE,
)
from fundmonitor.services.exceptions import ValidationError
from fundmonitor.services.performance.returns import simple_average, weighted_average
from fundmonitor.services.performance.types import Position

logger = logging.getLogger(__name__)


class TopNBucketizer:
    """Splits sorted positions into displayed rows and a long-tail row."""

    def bucketize(
            self,
            positions: Sequence[Position],
            top_n: int,
            high_moic_threshold: Decimal = DEFAULT_HIGH_MOIC_THRESHOLD,
    ) -> tuple[list[Position], Position | None]:
        """
        Args:
            positions: Positions in display order
            top_n: Rows to keep (0 = all)
            high_moic_threshold: MOIC at which a tail position stays visible

        Returns:
            (displayed rows, long-tail row or None)

        Raises:
            ValidationError: If top_n is negative
        """
        if top_n < 0:
            raise ValidationError(f"top_n must be >= 0, got {top_n}", field="top_n")

        if top_n == 0:
            return list(positions), None

        displayed = list(positions[:top_n])
        tail: list[Position] = []

        for position in positions[top_n:]:
            moic = position.moic
            if moic is not None and moic >= high_moic_threshold:
                position.is_high_moic_exception = True
                displayed.append(position)
            else:
                tail.append(position)

        if not tail:
            return displayed, None

        logger.debug(
            f"Top-{top_n}: {len(displayed)} displayed, {len(tail)} collapsed into long tail"
        )
        return displayed, self.collapse(tail)

    def collapse(self, tail: Sequence[Position]) -> Position:
        """
        Aggregate positions into one long-tail row.

        Amounts are summed and MOIC follows from the sums. ITD / QTD are
        MV-weighted over the positions that have one; entry valuations are
        plain means over the positions that report one.
        """
        return Position(
            project_id=LONG_TAIL_LABEL_TEMPLATE.format(count=len(tail)),
            cost=sum((p.cost for p in tail), ZERO),
            realized_mv=sum((p.realized_mv for p in tail), ZERO),
            unrealized_mv=sum((p.unrealized_mv for p in tail), ZERO),
            first_entry=simple_average(p.first_entry for p in tail),
            weighted_valuation=simple_average(p.weighted_valuation for p in tail),
            itd=weighted_average((p.itd, p.total_mv) for p in tail),
            qtd=weighted_average((p.qtd, p.total_mv) for p in tail),
            is_long_tail=True,
            position_count=len(tail),
        )
