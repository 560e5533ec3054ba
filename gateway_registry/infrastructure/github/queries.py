"""GraphQL read queries against the version-control host.

`$path` is a git expression `{branch}:{directory}`, resolving to the tree
holding the registry files.
"""

FETCH_REGISTRY_VERSION = """
query FetchRegistryVersion($owner: String!, $repo: String!, $path: String!) {
  repository(owner: $owner, name: $repo) {
    object(expression: $path) { oid }
  }
}
"""

FETCH_REGISTRY_FILES = """
query FetchRegistryFiles($owner: String!, $repo: String!, $path: String!) {
  repository(owner: $owner, name: $repo) {
    object(expression: $path) {
      oid
      ... on Tree {
        entries {
          name
          type
          object {
            ... on Blob {
              text
            }
          }
        }
      }
    }
  }
}
"""
