import itertools
import random

import pytest

from caseledger_core.analysis import SimulatedAnalyzer
from caseledger_core.crypto import AESGCMGateway, generate_key
from caseledger_core.registry import RecordRegistry
from caseledger_core.store import InMemoryStore


class PlainStore(InMemoryStore):
    """Memory store that only offers get/set, like the on-chain contract."""
    name = "plain"
    supports_cas = False


def make_registry(store=None, keys=None, clock=None, **kwargs):
    store = store if store is not None else InMemoryStore()
    opts = dict(analyzer=SimulatedAnalyzer(random.Random(7)))
    if keys is not None:
        it = iter(keys)
        opts["key_factory"] = lambda: next(it)
    if clock is not None:
        opts["clock"] = clock
    opts.update(kwargs)
    return RecordRegistry(store, AESGCMGateway(generate_key()), **opts)


def ticking_clock(start=1000):
    counter = itertools.count(start)
    return lambda: next(counter)


@pytest.fixture(params=["cas", "plain"])
def store(request):
    """Run a test against both concurrency strategies."""
    return InMemoryStore() if request.param == "cas" else PlainStore()


@pytest.fixture
def registry(store):
    return make_registry(store)
