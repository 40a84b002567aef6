import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

VERSION = r"[0-9a-zA-Z.\-]+"

# bundler/2.4.10 rubygems/3.4.10 ruby/3.2.2 (x86_64-pc-linux-gnu) command/install ...
BUNDLER_RUBY_PATTERN = re.compile(
    rf"\Abundler/(?P<bundler>{VERSION}) rubygems/(?P<client>{VERSION}) "
    rf"ruby/(?P<runtime>{VERSION}) \((?P<platform>[^)]*)\)(?: .*)?\Z"
)

# Ruby, RubyGems/3.4.10 x86_64-linux Ruby/3.2.2 (2023-03-30 patchlevel 53)
RUBY_PATTERN = re.compile(
    rf"\A(?:Ruby, )?RubyGems/(?P<client>{VERSION}) (?P<platform>.*) "
    rf"Ruby/(?P<runtime>{VERSION}) \(.*?\)"
    rf"(?: jruby| truffleruby| rbx)?(?: Gemstash/{VERSION})?\Z"
)

# bundler/1.0.22 rubygems/1.8.23
BUNDLER_PATTERN = re.compile(
    rf"\Abundler/(?P<bundler>{VERSION}) rubygems/(?P<client>{VERSION})(?: .*)?\Z"
)

# Ruby, Gems 1.3.7 / Ruby, RubyGems/1.8.23
GEM_PATTERN = re.compile(rf"\A(?:Ruby, )?(?:Gems |RubyGems/)(?P<client>{VERSION})\Z")


@dataclass(frozen=True)
class ParsedUserAgent:
    client: str
    dialect: str
    bundler: Optional[str] = None
    runtime: Optional[str] = None

def _bundler_ruby(match: re.Match) -> ParsedUserAgent:
    return ParsedUserAgent(
        client=match.group("client"),
        bundler=match.group("bundler"),
        runtime=match.group("runtime"),
        dialect="bundler_ruby",
    )


def _ruby(match: re.Match) -> ParsedUserAgent:
    return ParsedUserAgent(client=match.group("client"), runtime=match.group("runtime"), dialect="ruby")


def _bundler(match: re.Match) -> ParsedUserAgent:
    return ParsedUserAgent(client=match.group("client"), bundler=match.group("bundler"), dialect="bundler")


def _gem(match: re.Match) -> ParsedUserAgent:
    return ParsedUserAgent(client=match.group("client"), dialect="gem")


# Tried in order; the first pattern that matches wins.
DIALECTS: Tuple[Tuple[re.Pattern, Callable[[re.Match], ParsedUserAgent]], ...] = (
    (BUNDLER_RUBY_PATTERN, _bundler_ruby),
    (RUBY_PATTERN, _ruby),
    (BUNDLER_PATTERN, _bundler),
    (GEM_PATTERN, _gem),
)


def parse(raw: str) -> Optional[ParsedUserAgent]:
    """Extract client, bundler and runtime versions from a user agent string.

    Returns None when the string follows none of the known dialects.
    """
    if not raw:
        return None

    for pattern, build in DIALECTS:
        match = pattern.match(raw)
        if match:
            return build(match)
    return None
