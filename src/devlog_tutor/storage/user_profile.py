"""User profile persistence."""

from ..models.user_profile import UserProfile
from .blob_store import PROFILE_BLOB, BlobStore


def load_profile(store: BlobStore) -> UserProfile | None:
    data = store.read(PROFILE_BLOB)
    if data is None:
        return None
    return UserProfile(**data)


def save_profile(store: BlobStore, profile: UserProfile) -> None:
    store.write(PROFILE_BLOB, profile.model_dump(mode="json"))
