"""Text templates for generated files."""

from __future__ import annotations

STARTER_CONFIG = """\
# copilot-context configuration
#
# `copilot-context run` fetches every source below into `dest`.
# Source types: path, url, repo, sh. `files` takes glob rules where a
# leading `!` excludes and the last matching rule wins.

version = 1
dest = "{dest}"

# [[sources]]
# type = "path"
# name = "local-notes"
# path = "README.md"
# dest = "notes/README.md"

# [[sources]]
# type = "url"
# name = "api-spec"
# url = "https://example.com/openapi.yaml"
# dest = "specs/openapi.yaml"

# [[sources]]
# type = "repo"
# name = "upstream-docs"
# repo = "https://github.com/user/project.git"
# branch = "main"
# dest = "vendor/project"
# files = ["docs/**", "*.md", "!CHANGELOG.md"]

# [[sources]]
# type = "sh"
# name = "tree"
# script = "ls -R > tree.txt"
# dest = "info"
"""


def render_starter_config(dest: str) -> str:
    return STARTER_CONFIG.replace("{dest}", dest)
