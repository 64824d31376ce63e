"""Built-in plugins, registered when ``tabby.plugins`` is imported.

    jekyll-avatar    ``{{ "octocat" | avatar }}`` -> GitHub avatar <img>
    jekyll-mentions  ``{{ content | mentionify }}`` links ``@user`` to GitHub
    jekyll-sitemap   marker; the exporter writes ``sitemap.xml`` when listed
"""

from __future__ import annotations

import html
import re
from typing import Any

from tabby.plugins.registry import Plugin, register

_AVATAR_BASE = "https://avatars.githubusercontent.com"
_MENTIONS_BASE = "https://github.com"
_MENTION_RE = re.compile(r"(?<![\w/@])@([A-Za-z0-9][A-Za-z0-9-]{0,38})\b")


def avatar(user: Any, size: int = 40) -> str:
    """Render an ``<img>`` tag for a GitHub user's avatar."""
    name = html.escape(str(user).lstrip("@"))
    src = f"{_AVATAR_BASE}/{name}?v=3&amp;s={size}"
    return (
        f'<img class="avatar avatar-small" src="{src}" alt="{name}" '
        f'width="{size}" height="{size}" data-proofer-ignore="true" />'
    )


def mentionify(text: Any, base_url: str = _MENTIONS_BASE) -> str:
    """Link ``@user`` mentions in *text* to their profile pages."""
    base = base_url.rstrip("/")
    return _MENTION_RE.sub(
        lambda m: f'<a href="{base}/{m.group(1)}" class="user-mention">@{m.group(1)}</a>',
        str(text),
    )


class AvatarPlugin(Plugin):
    def configure_template_engine(self, engine: Any) -> None:
        engine.update_filters({"avatar": avatar})


class MentionsPlugin(Plugin):
    def configure_template_engine(self, engine: Any) -> None:
        engine.update_filters({"mentionify": mentionify})


class SitemapPlugin(Plugin):
    """Enables ``sitemap.xml`` generation during ``tabby build``."""


def register_builtins() -> None:
    register("jekyll-avatar", AvatarPlugin())
    register("jekyll-mentions", MentionsPlugin())
    register("jekyll-sitemap", SitemapPlugin())
