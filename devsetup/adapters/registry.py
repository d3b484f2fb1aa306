"""
Adapter registry — the generic "ensure" runner.

The registry is the single point of adapter dispatch. For each action it
validates params, asks the adapter whether the resource is already in
its desired state, and only then executes. The engine never talks to
adapters directly.
"""

from __future__ import annotations

import logging
import time

from devsetup.adapters.base import Adapter, ExecutionContext
from devsetup.adapters.mock import MockAdapter
from devsetup.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters.

    In mock mode every action is routed to ``mock_adapter`` (a
    ``MockAdapter`` by default) instead of its real adapter.
    """

    def __init__(self, mock_mode: bool = False, mock_adapter: Adapter | None = None):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter = mock_adapter
        if mock_mode and mock_adapter is None:
            self._mock_adapter = MockAdapter()

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def register(self, adapter: Adapter) -> None:
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def execute_action(
        self,
        action: Action,
        home: str = "",
        user: str = "",
        dry_run: bool = False,
        use_sudo: bool = True,
        check_satisfied: bool = True,
    ) -> Receipt:
        """Ensure one action through its adapter. Never raises.

        1. Resolve the adapter (or mock)
        2. Validate the action params
        3. Idempotency check — satisfied resources are skipped
        4. Execute (or report what a dry-run would do)

        ``check_satisfied=False`` skips step 3, for a dry-run whose
        earlier steps would have changed the state being checked.
        """
        start_time = time.monotonic()

        context = ExecutionContext(
            action=action,
            home=home,
            user=user,
            dry_run=dry_run,
            use_sudo=use_sudo,
            params=action.params,
        )

        adapter: Adapter | None
        if self._mock_mode:
            adapter = self._mock_adapter
        else:
            adapter = self._adapters.get(action.adapter)

        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        try:
            is_valid, error_msg = adapter.validate(context)
            if not is_valid:
                return Receipt.failure(
                    adapter=action.adapter,
                    action_id=action.id,
                    error=f"Validation failed: {error_msg}",
                )
        except Exception as e:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation error: {e}",
            )

        satisfied = False
        if check_satisfied:
            try:
                satisfied = adapter.is_satisfied(context)
            except Exception as e:
                logger.debug("Idempotency check for %s raised: %s", action.id, e)

        if satisfied:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason="already satisfied",
                metadata={"satisfied": True},
            )

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would ensure {action.adapter}:{action.id}",
                metadata={"dry_run": True},
            )

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            # Adapters should never raise
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt
