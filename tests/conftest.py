import gzip
import json
from pathlib import Path

import pytest

SAMPLE_LOG = Path(__file__).resolve().parent.parent / "test" / "sample_10.log.gz"

BUNDLER_RUBY_UA = "bundler/2.4.10 rubygems/3.4.10 ruby/3.2.2 (x86_64-pc-linux-gnu) command/install 1a2b3c4d5e6f7a8b"
RUBY_UA = "Ruby, RubyGems/3.3.26 x86_64-linux Ruby/3.1.4 (2023-03-30 patchlevel 223)"
GEM_UA = "Ruby, Gems 1.3.7"
UNKNOWN_UA = "curl/8.1.2"


def record(user_agent, request_path="/versions", timestamp="2023-04-01T10:15:30Z"):
    return json.dumps({"timestamp": timestamp, "user_agent": user_agent, "request_path": request_path})


class FakeComm:
    """Stands in for MPI.COMM_WORLD; `peers` are the objects other ranks would send."""

    def __init__(self, rank=0, size=1, peers=()):
        self.rank = rank
        self.size = size
        self.peers = list(peers)
        self.sent = None

    def Get_rank(self):
        return self.rank

    def Get_size(self):
        return self.size

    def gather(self, obj, root=0):
        self.sent = obj
        if self.rank != root:
            return None
        return [obj] + self.peers


@pytest.fixture
def sample_log():
    return str(SAMPLE_LOG)


@pytest.fixture
def write_gz(tmp_path):
    def write(name, lines):
        path = tmp_path / name
        with gzip.open(path, "wb") as handle:
            for line in lines:
                handle.write(line if isinstance(line, bytes) else line.encode("utf-8"))
                handle.write(b"\n")
        return str(path)

    return write
