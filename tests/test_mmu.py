import pytest

from opsim.mmu import Mmu, NO_FRAME, Tlb, TlbAlgorithm, TranslationError


class CountingLookup:
    def __init__(self, table):
        self.table = table
        self.calls = []

    def __call__(self, pid, page):
        self.calls.append((pid, page))
        return self.table.get((pid, page))


def test_parse_algorithms():
    assert TlbAlgorithm.parse("FIFO") is TlbAlgorithm.FIFO
    assert TlbAlgorithm.parse("LRU") is TlbAlgorithm.LRU
    assert TlbAlgorithm.parse(TlbAlgorithm.LRU) is TlbAlgorithm.LRU


def test_invalid_algorithm_rejected_when_enabled():
    with pytest.raises(ValueError):
        Tlb(4, "RANDOM")


def test_invalid_algorithm_ignored_when_disabled():
    tlb = Tlb(0, "RANDOM")
    assert tlb.enabled is False
    assert tlb.lookup(1, 0) is None


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        Tlb(-1)


def test_lookup_miss_then_hit():
    tlb = Tlb(2, "FIFO")
    assert tlb.lookup(1, 3) is None
    tlb.insert(1, 3, 8)
    assert tlb.lookup(1, 3) == 8
    assert tlb.lookup(2, 3) is None


def test_fifo_evicts_oldest():
    tlb = Tlb(2, "FIFO")
    tlb.insert(1, 0, 10)
    tlb.insert(1, 1, 11)
    tlb.lookup(1, 0)
    tlb.insert(1, 2, 12)
    assert tlb.lookup(1, 0) is None
    assert tlb.lookup(1, 1) == 11
    assert tlb.lookup(1, 2) == 12


def test_lru_evicts_least_recently_used():
    tlb = Tlb(2, "LRU")
    tlb.insert(1, 0, 10)
    tlb.insert(1, 1, 11)
    assert tlb.lookup(1, 0) == 10
    tlb.insert(1, 2, 12)
    assert tlb.lookup(1, 1) is None
    assert tlb.lookup(1, 0) == 10
    assert tlb.lookup(1, 2) == 12


def test_lru_without_touch_evicts_first_inserted():
    tlb = Tlb(2, "LRU")
    tlb.insert(1, 0, 10)
    tlb.insert(1, 1, 11)
    tlb.insert(1, 2, 12)
    assert tlb.lookup(1, 0) is None
    assert tlb.lookup(1, 1) == 11


def test_disabled_tlb_insert_is_noop():
    tlb = Tlb(0)
    tlb.insert(1, 0, 5)
    assert tlb.lookup(1, 0) is None


def test_mmu_rejects_bad_page_size():
    with pytest.raises(ValueError):
        Mmu(0, CountingLookup({}))


def test_translate_combines_frame_and_offset():
    lookup = CountingLookup({(1, 2): 3})
    mmu = Mmu(16, lookup)
    address = mmu.translate(1, 2, 5)
    assert address == 3 * 16 + 5
    assert address // 16 == 3
    assert address % 16 == 5


def test_translate_uses_tlb_on_second_access():
    lookup = CountingLookup({(1, 0): 4})
    mmu = Mmu(8, lookup, Tlb(4, "LRU"))
    first = mmu.translate(1, 0, 1)
    second = mmu.translate(1, 0, 1)
    assert first == second
    assert lookup.calls == [(1, 0)]


def test_translate_without_tlb_asks_memory_each_time():
    lookup = CountingLookup({(1, 0): 4})
    mmu = Mmu(8, lookup)
    mmu.translate(1, 0, 0)
    mmu.translate(1, 0, 0)
    assert len(lookup.calls) == 2


@pytest.mark.parametrize("answer", [None, NO_FRAME])
def test_translate_missing_frame_raises(answer):
    mmu = Mmu(8, lambda pid, page: answer, Tlb(2))
    with pytest.raises(TranslationError):
        mmu.translate(1, 0, 0)


def test_failed_translation_is_not_cached():
    lookup = CountingLookup({})
    mmu = Mmu(8, lookup, Tlb(2))
    with pytest.raises(TranslationError):
        mmu.translate(1, 0, 0)
    assert mmu.tlb.lookup(1, 0) is None


def test_physical_addresses_spanning_pages():
    mmu = Mmu(4, CountingLookup({(1, 1): 7, (1, 2): 9}))
    addresses = mmu.physical_addresses(1, 6, 4, 2)
    assert addresses == [7 * 4 + 2, 9 * 4]


def test_physical_addresses_single_page():
    mmu = Mmu(16, CountingLookup({(2, 0): 1}))
    addresses = mmu.physical_addresses(2, 3, 4, 3)
    assert len(addresses) == 1
    assert addresses[0] % 16 == 3


def test_physical_addresses_empty_access():
    mmu = Mmu(16, CountingLookup({}))
    assert mmu.physical_addresses(1, 0, 0, 0) == []


def test_physical_addresses_missing_page_raises():
    mmu = Mmu(4, CountingLookup({(1, 0): 1}))
    with pytest.raises(TranslationError):
        mmu.physical_addresses(1, 0, 8, 0)