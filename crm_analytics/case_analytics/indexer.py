# crm_analytics/case_analytics/indexer.py
"""
Case Product Index - group case-product lines by owning case

Every other component reads product lines through this index. It is built
once per data load and rebuilt wholesale whenever cases or their product
lines change; it is never mutated in place.

Usage:
    index = build_case_product_index(case_products)

    lines = index.get(case_id)          # ordered list of line dicts
    frame = index.lines_for([1, 2, 3])  # DataFrame slice for several cases
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Tuple, Union

import pandas as pd

from ..config import config
from .constants import LINE_COLUMNS, LINE_TEXT_COLUMNS
from .models import (
    to_frame, set_mask, strip_text, coerce_flag, coerce_count, product_key,
)

logger = logging.getLogger(__name__)


def prepare_lines(lines: Union['CaseProductIndex', pd.DataFrame, Iterable[Any], None]) -> pd.DataFrame:
    """
    Normalize raw case-product lines.

    Adds a `product_key` column (product id as string, else product name)
    and coerces `is_company_product`, `units` and `sequence`.
    Lines are kept even when they lack a case id.
    """
    if isinstance(lines, CaseProductIndex):
        return lines.frame

    frame = to_frame(lines, LINE_COLUMNS)
    for col in LINE_TEXT_COLUMNS:
        frame[col] = strip_text(frame[col])
    frame['is_company_product'] = coerce_flag(frame['is_company_product'])
    frame['units'] = coerce_count(frame['units'])
    frame['sequence'] = coerce_count(frame['sequence'])
    frame['product_key'] = pd.Series(
        [product_key(pid, name) for pid, name in zip(frame['product_id'], frame['product_name'])],
        index=frame.index,
        dtype=object,
    )
    return frame


class CaseProductIndex:
    """
    Read-only mapping from case id to its product lines, ordered by sequence.

    The underlying frame is shared with callers; treat it as immutable.
    """

    def __init__(self, frame: pd.DataFrame):
        self._frame = frame.reset_index(drop=True)
        self._positions = self._frame.groupby('case_id', sort=False).indices if not self._frame.empty else {}

    # =========================================================================
    # MAPPING PROTOCOL
    # =========================================================================

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, case_id: Any) -> bool:
        return case_id in self._positions

    def __iter__(self):
        return iter(self._positions)

    def __repr__(self) -> str:
        return f"CaseProductIndex({len(self)} cases, {len(self._frame)} lines)"

    @property
    def frame(self) -> pd.DataFrame:
        """All indexed lines, grouped by case and sorted by sequence."""
        return self._frame

    @property
    def case_ids(self) -> List[Any]:
        return list(self._positions)

    def get(self, case_id: Any) -> List[Dict[str, Any]]:
        """Ordered product lines of one case (empty list if unknown)."""
        positions = self._positions.get(case_id)
        if positions is None:
            return []
        return self._frame.iloc[positions].to_dict('records')

    def lines_for(self, case_ids: Iterable[Any]) -> pd.DataFrame:
        """DataFrame of the lines belonging to any of `case_ids`."""
        wanted = list(case_ids)
        if not wanted or self._frame.empty:
            return self._frame.iloc[0:0]
        return self._frame[self._frame['case_id'].isin(wanted)]

    def groupings(self) -> Dict[Any, Tuple[Any, ...]]:
        """Case id -> tuple of product keys in sequence order."""
        keys = self._frame['product_key']
        return {
            case_id: tuple(keys.iloc[positions])
            for case_id, positions in self._positions.items()
        }

    def restrict_to(self, case_ids: Iterable[Any]) -> 'CaseProductIndex':
        """New index holding only the given cases."""
        return CaseProductIndex(self.lines_for(case_ids))


def build_case_product_index(
    lines: Union[pd.DataFrame, Iterable[Any], None]
) -> CaseProductIndex:
    """
    Group product lines by case id, sorted ascending by sequence.

    Lines without a case id are dropped. Lines without a sequence sort as 0;
    ties keep their input order.

    Args:
        lines: All product lines currently loaded

    Returns:
        CaseProductIndex
    """
    start_time = time.perf_counter()

    frame = prepare_lines(lines)
    has_case = set_mask(frame['case_id'])
    dropped = int((~has_case).sum())
    if dropped:
        logger.debug(f"Dropped {dropped} case-product line(s) without case_id")

    frame = frame[has_case].sort_values('sequence', kind='stable')
    index = CaseProductIndex(frame)

    if config.debug_timing:
        elapsed = time.perf_counter() - start_time
        logger.debug(f"   📊 [build_case_product_index] {index!r} in {elapsed:.3f}s")

    return index
