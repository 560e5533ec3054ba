"""
`_sdl` field for strawberry services.

Services joining the gateway answer the `{ _sdl }` probe with their own
printed schema. Mix `SDLQuery` into the service's Query type:

    @strawberry.type
    class Query(SDLQuery):
        @strawberry.field
        def products(self) -> List[Product]: ...

    schema = strawberry.Schema(query=Query)
"""

import strawberry
from strawberry.types import Info


@strawberry.type
class SDLQuery:
    @strawberry.field(name="_sdl", description="Schema definition of this service")
    def sdl(self, info: Info) -> str:
        return info.schema.as_str()
