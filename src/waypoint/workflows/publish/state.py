"""Per-package state carried through the publish steps and checkpoints."""

from datetime import datetime

from pydantic import BaseModel

from waypoint.contracts import Item, ReleaseType


class ParcelState(BaseModel):
    """Checkpointed state of one package being published.

    Every field has a default so that a package without a checkpoint
    fragment is reconstructed in its initial state.
    """

    current_version: str = "0.0.0"
    release_type: ReleaseType | None = None
    release_version: str | None = None
    changelog_cut: bool = False
    committed: bool = False
    published: bool = False
    published_at: datetime | None = None


# A parcel is a package (by name) plus its publish state
Parcel = Item[ParcelState]
