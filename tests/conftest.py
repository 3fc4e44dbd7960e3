import pytest

from rpconvert.categories import build_taxonomy
from rpconvert.header import Header, Method

from tracebuilder import METHODS, TraceBuilder


@pytest.fixture
def taxonomy():
  return build_taxonomy()


@pytest.fixture
def header():
  methods = {
    mid: Method(id=mid, class_name=klass[1:-1], name=name, signature=sig)
    for mid, (klass, name, sig) in METHODS.items()
  }
  return Header(sample_count=0, duration_us=0, metadata={}, thread_names=("Client",), methods=methods)


@pytest.fixture
def builder():
  return TraceBuilder(methods=METHODS, metadata={"os.name": "Linux", "os.arch": "amd64", "buildID": "abc", "delay": 1000})
