"""Tracker-side records: seeders, shared files, users and groups."""

from __future__ import annotations

import random
from dataclasses import dataclass, field


@dataclass
class Seeder:
    """A peer address offering a file, and whether it is sharing now."""

    socket_id: str = ""
    is_sharing: bool = True


@dataclass
class TorrentFile:
    """A file shared in a group, with its piece hashes and seeders."""

    path: str = ""
    num_pieces: int = 0
    hash_sequence: str = ""
    seeders: dict[str, Seeder] = field(default_factory=dict)

    def has_active_seeder(self) -> bool:
        """True if at least one seeder is currently sharing the file."""
        return any(seeder.is_sharing for seeder in self.seeders.values())


@dataclass
class User:
    """A registered user and the groups they belong to."""

    user_id: str = ""
    password: str = field(default="", repr=False)
    groups: set[str] = field(default_factory=set)

    def login_attempt(self, user_id: str, password: str) -> bool:
        """Check the given credentials against this user's."""
        return user_id == self.user_id and password == self.password


@dataclass
class Group:
    """A sharing group with an owner, members, requests and files."""

    group_id: str = ""
    owner_id: str = ""
    members: set[str] = field(default_factory=set)
    joining_requests: set[str] = field(default_factory=set)
    files: dict[str, TorrentFile] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.owner_id:
            self.members.add(self.owner_id)

    def join(self, user: User) -> None:
        """Record a pending request from ``user`` to join."""
        self.joining_requests.add(user.user_id)

    def leave(self, user: User) -> None:
        """Remove ``user``; if they own the group, hand it to another member."""
        if self.owner_id == user.user_id:
            others = sorted(self.members - {user.user_id})
            self.owner_id = random.choice(others) if others else ""
        self.members.discard(user.user_id)
        user.groups.discard(self.group_id)

    def list_joining_requests(self) -> set[str]:
        """Return the ids of users waiting to be accepted."""
        return set(self.joining_requests)

    def accept_joining_request(self, user: User) -> None:
        """Move ``user`` from the pending requests into the members."""
        self.joining_requests.discard(user.user_id)
        self.members.add(user.user_id)
        user.groups.add(self.group_id)

    def add_file(self, file: TorrentFile) -> None:
        """Share ``file`` in the group, replacing any file with its path."""
        self.files[file.path] = file