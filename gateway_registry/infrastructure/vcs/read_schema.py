"""GraphQL read API of the in-memory host.

Mirrors the subset of the GitHub schema the registry queries:

    repository(owner, name) {
      object(expression: "main:schemas") {
        oid
        ... on Tree { entries { name type object { ... on Blob { text } } } }
      }
    }
"""

from typing import Any, List, Optional

import strawberry
from strawberry.types import Info


@strawberry.interface
class GitObject:
    oid: str


@strawberry.type
class Blob(GitObject):
    text: Optional[str]


@strawberry.type
class TreeEntry:
    name: str
    type: str
    object: Optional[GitObject]


@strawberry.type
class Tree(GitObject):
    entries: List[TreeEntry]


@strawberry.type
class Repository:
    owner: str
    name: str
    host: strawberry.Private[Any]

    @strawberry.field
    def object(self, expression: str) -> Optional[GitObject]:
        return self.host.resolve_expression(expression)


@strawberry.type
class Query:
    @strawberry.field
    def repository(self, info: Info, owner: str, name: str) -> Optional[Repository]:
        host = info.context["host"]
        if owner != host.owner or name != host.repo:
            return None
        return Repository(owner=owner, name=name, host=host)


read_schema = strawberry.Schema(query=Query, types=[Blob, Tree])
