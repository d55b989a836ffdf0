"""Branch naming conventions.

A branch name carries its own metadata: ``<version>[_<feature>][_<ticket>][_<description>]``
where a feature may be tagged as buildable with a ``build#`` prefix, e.g.
``1.2.3_build#login_42_fix-bug``. This module converts between names and
:class:`BranchDescriptor` values and decides which kind of branch may be
created from which.
"""

import json
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from gut.exceptions import IllegalTransition, InvalidArgument, InvalidFormat
from gut.logging_config import get_logger

logger = get_logger(__name__)

SEPARATOR = "_"
BUILDABLE_TAG = "build#"
MASTER = "master"

VERSION_PATTERN = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+(\.[0-9]+)?")
NUMERIC_PATTERN = re.compile(r"[0-9]+")


class BranchKind(Enum):
    """Position of a branch in the master -> version -> feature -> dev lineage."""

    MASTER = "master"
    VERSION = "version"
    FEATURE = "feature"
    DEV = "dev"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class BranchDescriptor:
    """Metadata encoded in a branch name.

    ``author`` and ``base_branch`` are never part of the name; they are only
    kept in the branch description stored alongside it.
    """

    version: str
    feature: str = ""
    is_buildable: bool = False
    ticket_number: str = ""
    description: str = ""
    author: str = ""
    base_branch: str = ""

    def to_metadata(self) -> str:
        """Serialize the descriptor as stored in ``branch.<name>.description``."""
        return json.dumps(
            {
                "version": self.version,
                "feature": self.feature,
                "ticketNumber": self.ticket_number,
                "description": self.description,
                "isBuildable": self.is_buildable,
                "author": self.author,
                "baseBranch": self.base_branch,
            }
        )

    @classmethod
    def from_metadata(cls, metadata: str) -> "BranchDescriptor":
        """Rebuild a descriptor from its stored branch description."""
        try:
            data = json.loads(metadata)
        except json.JSONDecodeError as err:
            raise InvalidFormat(metadata, f"Branch metadata is not valid JSON: {err}") from err
        if not isinstance(data, dict) or not data.get("version"):
            raise InvalidFormat(metadata, "Branch metadata has no version")

        ticket_number = data.get("ticketNumber")
        return cls(
            version=str(data["version"]),
            feature=data.get("feature") or "",
            is_buildable=bool(data.get("isBuildable")),
            ticket_number=str(ticket_number) if ticket_number else "",
            description=data.get("description") or "",
            author=data.get("author") or "",
            base_branch=data.get("baseBranch") or "",
        )


@dataclass
class BranchRequest:
    """Branch creation arguments as given on the command line."""

    version: Optional[str] = None
    feature: Optional[str] = None
    dev: Optional[str] = None
    ticket_number: Optional[Union[int, str]] = None
    buildable: bool = False


def is_numeric(fragment: str) -> bool:
    return NUMERIC_PATTERN.fullmatch(fragment) is not None


def is_valid_version(version: str) -> bool:
    """Check a version token is MAJOR.MINOR.PATCH with an optional BUILD part."""
    return VERSION_PATTERN.fullmatch(version) is not None


def encode(descriptor: BranchDescriptor) -> str:
    """Build the branch name for a descriptor.

    Empty fragments are left out instead of being kept as empty slots.
    """
    feature_fragment = f"{BUILDABLE_TAG if descriptor.is_buildable else ''}{descriptor.feature}"
    fragments = [
        descriptor.version,
        feature_fragment,
        str(descriptor.ticket_number or ""),
        descriptor.description,
    ]
    name = SEPARATOR.join(fragment for fragment in fragments if fragment)
    logger.debug(f"Encoded {descriptor} as '{name}'")
    return name


def decode(name: str) -> BranchDescriptor:
    """Parse a branch name into a descriptor.

    The feature is read from the second fragment unless it is numeric, the
    ticket number is the first numeric fragment found anywhere and the
    description is the last fragment. ``1.2.3_42`` therefore carries ticket
    42 and no feature, and ``1.2.3_fix`` reads as a feature branch.

    Raises:
        InvalidFormat: If the name is empty or has no version fragment
    """
    fragments = name.split(SEPARATOR)
    if not fragments[0]:
        raise InvalidFormat(name, f"Branch name '{name}' has no version fragment")

    feature_fragment = fragments[1] if len(fragments) > 1 and not is_numeric(fragments[1]) else ""
    is_buildable = feature_fragment.startswith(BUILDABLE_TAG)
    feature = feature_fragment[len(BUILDABLE_TAG) :] if is_buildable else feature_fragment

    ticket_number = next((fragment for fragment in fragments if is_numeric(fragment)), "")

    # The second fragment of a two-fragment name is the feature only. Reading it
    # as the description too would make every feature branch classify as dev
    # and break the round trip of feature descriptors.
    has_description = len(fragments) > 2 or (len(fragments) == 2 and not feature_fragment)
    description = fragments[-1] if has_description else ""

    descriptor = BranchDescriptor(
        version=fragments[0],
        feature=feature,
        is_buildable=is_buildable,
        ticket_number=ticket_number,
        description=description,
    )
    logger.debug(f"Decoded '{name}' as {descriptor}")
    return descriptor


def is_master_branch(descriptor: BranchDescriptor) -> bool:
    return (
        descriptor.version == MASTER
        and not descriptor.feature
        and not descriptor.ticket_number
        and not descriptor.description
    )


def is_version_branch(descriptor: BranchDescriptor) -> bool:
    return (
        is_valid_version(descriptor.version)
        and not descriptor.feature
        and not descriptor.ticket_number
        and not descriptor.description
    )


def is_feature_branch(descriptor: BranchDescriptor) -> bool:
    return (
        bool(descriptor.version)
        and bool(descriptor.feature)
        and not descriptor.ticket_number
        and not descriptor.description
    )


def is_dev_branch(descriptor: BranchDescriptor) -> bool:
    return bool(descriptor.version) and bool(descriptor.description)


def classify(descriptor: BranchDescriptor) -> BranchKind:
    """Classify a descriptor into exactly one branch kind."""
    if is_master_branch(descriptor):
        return BranchKind.MASTER
    if is_version_branch(descriptor):
        return BranchKind.VERSION
    if is_feature_branch(descriptor):
        return BranchKind.FEATURE
    if is_dev_branch(descriptor):
        return BranchKind.DEV
    return BranchKind.UNCLASSIFIED


# Requested kind -> (kinds it may be created from, rule)
TRANSITIONS: dict[BranchKind, tuple[frozenset[BranchKind], str]] = {
    BranchKind.VERSION: (
        frozenset({BranchKind.MASTER}),
        "version branches only from master",
    ),
    BranchKind.FEATURE: (
        frozenset({BranchKind.MASTER, BranchKind.VERSION}),
        "feature branches only from version branches or master",
    ),
    BranchKind.DEV: (
        frozenset({BranchKind.VERSION, BranchKind.FEATURE}),
        "dev branches only from version or feature branches",
    ),
}


def check_transition(current: BranchDescriptor, requested: BranchKind) -> None:
    """Check a branch of the requested kind may be created from the current one.

    Raises:
        IllegalTransition: If the lineage rules forbid it
    """
    current_kind = classify(current)
    if requested not in TRANSITIONS:
        raise IllegalTransition(current_kind.value, requested.value, f"{requested.value} branches cannot be created")

    parents, rule = TRANSITIONS[requested]
    if current_kind not in parents:
        raise IllegalTransition(current_kind.value, requested.value, rule)


def _check_no_separator(value: str, argument: str) -> None:
    if SEPARATOR in value:
        raise InvalidArgument(argument, "can't contain underscores")


def validate_request(request: BranchRequest) -> BranchKind:
    """Validate creation arguments and return the kind of branch requested.

    Without a version, feature or dev argument the request falls through to a
    dev branch with an empty description.

    Raises:
        InvalidFormat: If the version is not MAJOR.MINOR.PATCH[.BUILD]
        InvalidArgument: If the arguments can't be combined or contain underscores
    """
    given = [
        name
        for name, value in (("version", request.version), ("feature", request.feature), ("dev", request.dev))
        if value is not None
    ]
    if len(given) > 1:
        raise InvalidArgument("/".join(given), "are mutually exclusive")

    if request.ticket_number is not None and not request.dev:
        raise InvalidArgument("ticket-number", "only makes sense when creating a dev branch")
    if request.buildable and not request.feature:
        raise InvalidArgument("buildable", "only makes sense when creating a feature branch")

    if request.version is not None:
        if not is_valid_version(request.version):
            raise InvalidFormat(
                request.version,
                f"Argument version must follow semver (MAJOR.MINOR.PATCH[.BUILD]), got '{request.version}'",
            )
        return BranchKind.VERSION

    if request.feature is not None:
        if not request.feature:
            raise InvalidArgument("feature", "can't be empty")
        _check_no_separator(request.feature, "feature")
        # Either would decode as something other than the feature given
        if is_numeric(request.feature):
            raise InvalidArgument("feature", "can't be a number, it would read as a ticket number")
        if request.feature.startswith(BUILDABLE_TAG):
            raise InvalidArgument("feature", f"can't start with {BUILDABLE_TAG}, use --buildable instead")
        return BranchKind.FEATURE

    if request.dev is None:
        logger.warning("No version, feature or dev argument given, creating a dev branch without description")
        return BranchKind.DEV

    _check_no_separator(request.dev, "dev")
    if request.ticket_number is not None and not is_numeric(str(request.ticket_number)):
        raise InvalidArgument("ticket-number", f"must be a number, got '{request.ticket_number}'")
    return BranchKind.DEV


def plan_branch(
    current: BranchDescriptor,
    request: BranchRequest,
    author: str = "",
    base_branch: str = "",
) -> BranchDescriptor:
    """Work out the descriptor of a new branch created from the current one.

    Only the fields belonging to the requested kind are overwritten, so a dev
    branch keeps the version and feature of the branch it comes from.

    Raises:
        InvalidFormat: If the version is malformed
        InvalidArgument: If the arguments are invalid
        IllegalTransition: If the requested kind can't be created from the current branch
    """
    kind = validate_request(request)
    check_transition(current, kind)

    if kind == BranchKind.VERSION:
        new = replace(current, version=request.version)
    elif kind == BranchKind.FEATURE:
        new = replace(current, feature=request.feature, is_buildable=bool(request.buildable))
    else:
        ticket_number = "" if request.ticket_number is None else str(request.ticket_number)
        new = replace(current, ticket_number=ticket_number, description=request.dev or "")

    return replace(new, author=author, base_branch=base_branch)
