"""Tracker state and the account and group commands it answers."""

from __future__ import annotations

import threading
from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field

from .models import Group, User

INVALID_ARGUMENTS = "Invalid number of arguments provided."
NOT_LOGGED_IN = "User is not logged in."
GROUP_MISSING = "Group does not exist."


class RequestError(Exception):
    """A client request that the tracker refuses, with the reply to send."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _expect_args(args: Sequence[str], count: int) -> None:
    if len(args) != count:
        raise RequestError(INVALID_ARGUMENTS)


@dataclass
class TrackerState:
    """Everything the tracker knows: users, groups and who is logged in.

    ``clients`` maps a connection identifier to the id of the user logged
    in on it. Command methods take the arguments that follow the command
    word, return the success reply and raise :class:`RequestError` with the
    reply to send when the request is refused.
    """

    users: dict[str, User] = field(default_factory=dict)
    groups: dict[str, Group] = field(default_factory=dict)
    clients: dict[Hashable, str] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def current_user(self, client: Hashable) -> User:
        """Return the user logged in on ``client``."""
        user_id = self.clients.get(client)
        if user_id is None:
            raise RequestError(NOT_LOGGED_IN)
        return self.users.setdefault(user_id, User(user_id))

    def _existing_group(self, group_id: str) -> Group:
        group = self.groups.get(group_id)
        if group is None:
            raise RequestError(GROUP_MISSING)
        return group

    def _set_sharing(self, user: User, socket_string: str, sharing: bool) -> None:
        for group_id in user.groups:
            group = self.groups.get(group_id)
            if group is None:
                continue
            for torrent in group.files.values():
                seeder = torrent.seeders.get(socket_string)
                if seeder is not None:
                    seeder.is_sharing = sharing

    def create_user(self, client: Hashable, args: Sequence[str]) -> str:
        """Register a new user from ``[user_id, password]``."""
        _expect_args(args, 2)
        user_id, password = args
        if user_id in self.users:
            raise RequestError("Requested user already exists.")
        self.users[user_id] = User(user_id, password)
        return "Successfully created new user."

    def login(self, client: Hashable, args: Sequence[str]) -> str:
        """Log in from ``[user_id, password, peer_socket]``."""
        _expect_args(args, 3)
        user_id, password, socket_string = args
        user = self.users.get(user_id)
        if user is None:
            raise RequestError("User does not exist.")
        if client in self.clients:
            raise RequestError("User is already logged in.")
        if not user.login_attempt(user_id, password):
            raise RequestError("Unable to login: invalid credentials")
        self.clients[client] = user_id
        self._set_sharing(user, socket_string, True)
        return "Successfully logged in."

    def logout(self, client: Hashable, args: Sequence[str]) -> str:
        """Log out from ``[peer_socket]`` and stop its seeding."""
        _expect_args(args, 1)
        (socket_string,) = args
        user = self.current_user(client)
        self._set_sharing(user, socket_string, False)
        del self.clients[client]
        return "Successfully logged out."

    def create_group(self, client: Hashable, args: Sequence[str]) -> str:
        """Create the group ``[group_id]`` owned by the current user."""
        _expect_args(args, 1)
        (group_id,) = args
        if group_id in self.groups:
            raise RequestError("Group already exists.")
        user = self.current_user(client)
        self.groups[group_id] = Group(group_id, user.user_id)
        user.groups.add(group_id)
        return "Successfully created new group."

    def join_group(self, client: Hashable, args: Sequence[str]) -> str:
        """Ask to join the group ``[group_id]``."""
        _expect_args(args, 1)
        (group_id,) = args
        user = self.current_user(client)
        group = self._existing_group(group_id)
        if user.user_id in group.members:
            raise RequestError("User is already a member of the group.")
        if user.user_id in group.joining_requests:
            raise RequestError("User joining request is pending.")
        group.join(user)
        return "Successfully submitted joining request."

    def leave_group(self, client: Hashable, args: Sequence[str]) -> str:
        """Leave the group ``[group_id]``."""
        _expect_args(args, 1)
        (group_id,) = args
        user = self.current_user(client)
        group = self._existing_group(group_id)
        if user.user_id not in group.members:
            raise RequestError("User is not a member of the group.")
        if len(group.members) == 1 and group.owner_id == user.user_id:
            raise RequestError("User is the owner and last member of the group.")
        group.leave(user)
        return "Successfully left the group."

    def list_requests(self, client: Hashable, args: Sequence[str]) -> str:
        """List pending joining requests of ``[group_id]``, ``;``-separated."""
        _expect_args(args, 1)
        (group_id,) = args
        user = self.current_user(client)
        group = self._existing_group(group_id)
        if group.owner_id != user.user_id:
            raise RequestError("User is not owner of the group.")
        requests = group.list_joining_requests()
        if not requests:
            raise RequestError("No joining requests exist.")
        return ";".join(sorted(requests))

    def accept_request(self, client: Hashable, args: Sequence[str]) -> str:
        """Accept ``[group_id, user_id]`` into the group."""
        _expect_args(args, 2)
        group_id, user_id = args
        owner = self.current_user(client)
        group = self._existing_group(group_id)
        requested = self.users.get(user_id)
        if requested is None:
            raise RequestError("Requested user does not exist.")
        if group.owner_id != owner.user_id:
            raise RequestError("User is not the owner of the group.")
        if user_id not in group.joining_requests:
            raise RequestError("User has not submitted joining request for the group.")
        group.accept_joining_request(requested)
        return "Successfully added the user to the group."

    def list_groups(self, client: Hashable, args: Sequence[str]) -> str:
        """List every group id, ``;``-separated."""
        _expect_args(args, 0)
        if not self.groups:
            raise RequestError("No groups exist.")
        self.current_user(client)
        return ";".join(self.groups)