"""Release bounded context.

- changelog: pending-section validation and rewriting
- semver: tag-driven version resolution and bump policy
- guards: undo stack for partially irreversible operations
- orchestrator: the release state machine
"""

from __future__ import annotations
