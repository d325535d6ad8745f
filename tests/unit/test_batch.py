from __future__ import annotations

import pytest

from offline_agent.batch import AttemptResult, attempt, failures


@pytest.mark.asyncio
async def test_attempt_captures_value_and_failure():
    async def ok() -> int:
        return 42

    async def boom() -> int:
        msg = "nope"
        raise RuntimeError(msg)

    good = await attempt("a", ok)
    bad = await attempt("b", boom)

    assert good == AttemptResult.ok("a", 42)
    assert not bad.success
    assert isinstance(bad.cause, RuntimeError)
    assert failures([good, bad]) == [bad]
