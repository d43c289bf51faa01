from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Header

# Callers identify the player with x-user-id; without it advice is not personalized.
UserIdHeader = Annotated[Optional[str], Header(alias="x-user-id", max_length=128)]
