"""
Arroyyan Backend — Document Number Allocation Tests
=====================================================

What:  Tests for DocumentNumberAllocator.
How:   Mock DB session; random.randint is patched so candidates are known.

What we test:
    ✅ PREFIX-YYYYMMDD-NNN format
    ✅ A taken candidate is retried with a fresh suffix
    ✅ Exhausted attempts raise ConflictError (→ 409)
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from arroyyan.exceptions import ConflictError
from arroyyan.models.sale import Sale
from arroyyan.services.numbering import (
    SALE_PREFIX,
    DocumentNumberAllocator,
    format_number,
)


def _result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestFormatNumber:
    def test_format(self):
        assert format_number("INV", date(2025, 3, 14), 482) == "INV-20250314-482"

    def test_suffix_zero_padded(self):
        assert format_number("TRF", date(2025, 1, 2), 7) == "TRF-20250102-007"


class TestAllocate:
    def setup_method(self):
        self.allocator = DocumentNumberAllocator(max_attempts=3)

    @pytest.mark.asyncio
    async def test_free_candidate_returned(self, mock_db_session):
        mock_db_session.execute = AsyncMock(return_value=_result(None))

        with patch("arroyyan.services.numbering.random.randint", return_value=482):
            number = await self.allocator.allocate(
                mock_db_session, Sale.sale_number, SALE_PREFIX, date(2025, 3, 14)
            )

        assert number == "INV-20250314-482"
        mock_db_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_collision_retried(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=[_result("INV-20250314-482"), _result(None)]
        )

        with patch("arroyyan.services.numbering.random.randint", side_effect=[482, 517]):
            number = await self.allocator.allocate(
                mock_db_session, Sale.sale_number, SALE_PREFIX, date(2025, 3, 14)
            )

        assert number == "INV-20250314-517"
        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_attempts_conflict(self, mock_db_session):
        mock_db_session.execute = AsyncMock(return_value=_result("taken"))

        with pytest.raises(ConflictError) as exc_info:
            await self.allocator.allocate(
                mock_db_session, Sale.sale_number, SALE_PREFIX, date(2025, 3, 14)
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.context == {"prefix": "INV", "date": "2025-03-14"}
        assert mock_db_session.execute.await_count == 3
