"""
Nuxeo entity representations.

Every entity decodes from the server's JSON with ``from_dict`` and encodes
back with ``to_dict``; the ``entity-type`` tag names the wire shape.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

ENTITY_TYPE = "entity-type"


@dataclass
class Document:
    """Nuxeo document representation."""

    type: str
    id: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    path: Optional[str] = None
    state: Optional[str] = None
    parent_ref: Optional[str] = None
    repository_name: Optional[str] = None
    change_token: Optional[str] = None
    is_checked_out: Optional[bool] = None
    last_modified: Optional[str] = None
    facets: list[str] = field(default_factory=list)
    properties: dict[str, Any] = field(default_factory=dict)
    context_parameters: dict[str, Any] = field(default_factory=dict)

    entity_type = "document"

    @classmethod
    def create_with_name(cls, name: str, type: str) -> "Document":
        """New document to be created under a parent."""
        return cls(type=type, name=name)

    @classmethod
    def create_with_id(cls, id: str, type: str) -> "Document":
        """Reference to an existing document, e.g. for partial updates."""
        return cls(type=type, id=id)

    def get_property_value(self, xpath: str) -> Any:
        return self.properties.get(xpath)

    def set_property_value(self, xpath: str, value: Any) -> None:
        self.properties[xpath] = value

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        """Create from a ``document`` entity."""
        return cls(
            type=data.get("type", ""),
            id=data.get("uid"),
            name=data.get("name") or _last_segment(data.get("path")),
            title=data.get("title"),
            path=data.get("path"),
            state=data.get("state"),
            parent_ref=data.get("parentRef"),
            repository_name=data.get("repository"),
            change_token=data.get("changeToken"),
            is_checked_out=data.get("isCheckedOut"),
            last_modified=data.get("lastModified"),
            facets=list(data.get("facets") or []),
            properties=dict(data.get("properties") or {}),
            context_parameters=dict(data.get("contextParameters") or {}),
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {ENTITY_TYPE: self.entity_type, "type": self.type}
        if self.id:
            data["uid"] = self.id
        if self.name:
            data["name"] = self.name
        if self.change_token:
            data["changeToken"] = self.change_token
        data["properties"] = dict(self.properties)
        return data


def _last_segment(path: Optional[str]) -> Optional[str]:
    if not path or path == "/":
        return None
    return path.rstrip("/").rsplit("/", 1)[-1]


@dataclass
class Documents:
    """Paginable list of documents."""

    entries: list[Document] = field(default_factory=list)
    total_size: int = -1
    page_size: int = 0
    current_page_index: int = 0
    is_next_page_available: bool = False

    entity_type = "documents"

    @classmethod
    def from_dict(cls, data: dict) -> "Documents":
        return cls(
            entries=[Document.from_dict(entry) for entry in data.get("entries") or []],
            total_size=data.get("totalSize", data.get("resultsCount", -1)),
            page_size=data.get("pageSize", 0),
            current_page_index=data.get("currentPageIndex", 0),
            is_next_page_available=bool(data.get("isNextPageAvailable", False)),
        )

    def to_dict(self) -> dict:
        return {
            ENTITY_TYPE: self.entity_type,
            "entries": [doc.to_dict() for doc in self.entries],
            "totalSize": self.total_size,
            "pageSize": self.page_size,
            "currentPageIndex": self.current_page_index,
            "isNextPageAvailable": self.is_next_page_available,
        }

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Document]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> Document:
        return self.entries[index]


@dataclass
class RecordSet:
    """Rows returned by a query or result-set operation."""

    entries: list[dict[str, Any]] = field(default_factory=list)
    results_count: int = -1
    page_size: int = 0
    current_page_index: int = 0
    number_of_pages: int = 0

    entity_type = "recordSet"

    @classmethod
    def from_dict(cls, data: dict) -> "RecordSet":
        return cls(
            entries=[dict(row) for row in data.get("entries") or []],
            results_count=data.get("resultsCount", -1),
            page_size=data.get("pageSize", 0),
            current_page_index=data.get("currentPageIndex", 0),
            number_of_pages=data.get("numberOfPages", 0),
        )

    def to_dict(self) -> dict:
        return {
            ENTITY_TYPE: self.entity_type,
            "entries": [dict(row) for row in self.entries],
            "resultsCount": self.results_count,
            "pageSize": self.page_size,
            "currentPageIndex": self.current_page_index,
            "numberOfPages": self.number_of_pages,
        }

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class User:
    """Nuxeo user.

    The server nests the profile under ``properties``; it is flattened here.
    """

    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    password: Optional[str] = None
    tenant_id: Optional[str] = None
    groups: list[str] = field(default_factory=list)
    extended_groups: list[str] = field(default_factory=list)
    is_administrator: bool = False
    is_anonymous: bool = False

    entity_type = "user"

    @property
    def id(self) -> str:
        return self.username

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        props = data.get("properties") or {}
        return cls(
            username=props.get("username") or data.get("id", ""),
            first_name=props.get("firstName"),
            last_name=props.get("lastName"),
            email=props.get("email"),
            company=props.get("company"),
            tenant_id=props.get("tenantId"),
            groups=list(props.get("groups") or []),
            extended_groups=[g.get("name", "") for g in data.get("extendedGroups") or []],
            is_administrator=bool(data.get("isAdministrator", False)),
            is_anonymous=bool(data.get("isAnonymous", False)),
        )

    def to_dict(self) -> dict:
        props: dict[str, Any] = {
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "company": self.company,
            "tenantId": self.tenant_id,
            "groups": list(self.groups),
        }
        if self.password is not None:
            props["password"] = self.password
        return {
            ENTITY_TYPE: self.entity_type,
            "id": self.username,
            "properties": {k: v for k, v in props.items() if v is not None},
        }


@dataclass
class Group:
    """Nuxeo group."""

    group_name: str
    group_label: Optional[str] = None
    member_users: list[str] = field(default_factory=list)
    member_groups: list[str] = field(default_factory=list)

    entity_type = "group"

    @classmethod
    def from_dict(cls, data: dict) -> "Group":
        return cls(
            group_name=data.get("groupname") or data.get("id", ""),
            group_label=data.get("grouplabel"),
            member_users=list(data.get("memberUsers") or []),
            member_groups=list(data.get("memberGroups") or []),
        )

    def to_dict(self) -> dict:
        return {
            ENTITY_TYPE: self.entity_type,
            "groupname": self.group_name,
            "grouplabel": self.group_label,
            "memberUsers": list(self.member_users),
            "memberGroups": list(self.member_groups),
        }


@dataclass
class Workflow:
    """Workflow model or running instance."""

    id: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    state: Optional[str] = None
    workflow_model_name: Optional[str] = None
    initiator: Optional[str] = None
    attached_document_ids: list[str] = field(default_factory=list)

    entity_type = "workflow"

    @classmethod
    def from_dict(cls, data: dict) -> "Workflow":
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            title=data.get("title"),
            state=data.get("state"),
            workflow_model_name=data.get("workflowModelName"),
            initiator=data.get("initiator"),
            attached_document_ids=[
                d.get("id", "") for d in data.get("attachedDocumentIds") or []
            ],
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {ENTITY_TYPE: self.entity_type}
        if self.workflow_model_name:
            data["workflowModelName"] = self.workflow_model_name
        if self.attached_document_ids:
            data["attachedDocumentIds"] = list(self.attached_document_ids)
        return data


@dataclass
class Workflows:
    """List of workflows."""

    entries: list[Workflow] = field(default_factory=list)

    entity_type = "workflows"

    @classmethod
    def from_dict(cls, data: dict) -> "Workflows":
        return cls(entries=[Workflow.from_dict(entry) for entry in data.get("entries") or []])

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Workflow]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> Workflow:
        return self.entries[index]


_VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?(?:-HF(\d+))?(-SNAPSHOT)?$")


@dataclass(frozen=True, order=True)
class NuxeoVersion:
    """Server version, e.g. ``10.10``, ``9.10-HF05`` or ``11.1-SNAPSHOT``."""

    major: int
    minor: int
    build: int = 0
    hotfix: int = 0
    snapshot: bool = field(default=False, compare=False)

    @classmethod
    def parse(cls, version: str) -> "NuxeoVersion":
        match = _VERSION_PATTERN.match(version.strip())
        if not match:
            raise ValueError(f"Invalid Nuxeo version: {version!r}")
        major, minor, build, hotfix, snapshot = match.groups()
        return cls(
            major=int(major),
            minor=int(minor),
            build=int(build or 0),
            hotfix=int(hotfix or 0),
            snapshot=snapshot is not None,
        )

    def is_greater_than(self, other: "NuxeoVersion | str") -> bool:
        """True if this version is at least ``other`` (same as the server's check)."""
        if isinstance(other, str):
            other = NuxeoVersion.parse(other)
        return self >= other

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}"
        if self.build:
            version += f".{self.build}"
        if self.hotfix:
            version += f"-HF{self.hotfix:02d}"
        if self.snapshot:
            version += "-SNAPSHOT"
        return version


LTS_7_10 = NuxeoVersion(7, 10)
LTS_8_10 = NuxeoVersion(8, 10)
LTS_9_10 = NuxeoVersion(9, 10)
LTS_10_10 = NuxeoVersion(10, 10)
