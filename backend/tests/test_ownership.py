"""
Ownership check tests
"""
import sys
import os
from unittest.mock import AsyncMock, patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from services.ownership import ensure_recipe_owner
from utils.errors import ForbiddenError, NotFoundError


@pytest.mark.asyncio
async def test_owner_passes():
    with patch('services.ownership.recipe_repository') as mock_repo:
        mock_repo.get_owner_id = AsyncMock(return_value="user-1")

        assert await ensure_recipe_owner("r1", "user-1") is None
        mock_repo.get_owner_id.assert_awaited_once_with("r1")


@pytest.mark.asyncio
async def test_non_owner_is_forbidden():
    with patch('services.ownership.recipe_repository') as mock_repo:
        mock_repo.get_owner_id = AsyncMock(return_value="user-2")

        with pytest.raises(ForbiddenError) as exc:
            await ensure_recipe_owner("r1", "user-1", action="delete")

    assert exc.value.status_code == 403
    assert exc.value.message == "You can only delete your own recipes"


@pytest.mark.asyncio
async def test_missing_recipe_is_not_found():
    with patch('services.ownership.recipe_repository') as mock_repo:
        mock_repo.get_owner_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError) as exc:
            await ensure_recipe_owner("missing", "user-1")

    assert exc.value.status_code == 404
    assert exc.value.message == "Recipe not found"
