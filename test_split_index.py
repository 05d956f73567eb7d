import pytest

from entry import SplitPair
from split_index import SplitIndex


def test_lookup_by_either_member():
    index = SplitIndex([SplitPair.link(1, 2)])
    assert index.pair_for(1).id == "1-2"
    assert index.pair_for(2).id == "1-2"
    assert index.pair_for(3) is None
    assert 1 in index and 3 not in index
    assert index.is_second_half(2)
    assert not index.is_second_half(1)
    assert index.first_half_of(2) == 1


def test_entry_may_belong_to_one_pair_only():
    index = SplitIndex([SplitPair.link(1, 2)])
    with pytest.raises(ValueError):
        index.add(SplitPair.link(2, 3))
    with pytest.raises(ValueError):
        index.add(SplitPair.link(4, 4))
    assert len(index) == 1


def test_conflicting_pairs_are_skipped_on_construction():
    index = SplitIndex([SplitPair.link(1, 2), SplitPair.link(3, 1), SplitPair.link(5, 6)])
    assert [pair.id for pair in index.pairs] == ["1-2", "5-6"]


def test_remove_and_discard_clear_both_members():
    index = SplitIndex([SplitPair.link(1, 2), SplitPair.link(3, 4)])
    assert index.remove("1-2").id == "1-2"
    assert index.pair_for(1) is None and index.pair_for(2) is None

    assert index.discard_for(4).id == "3-4"
    assert index.discard_for(4) is None
    assert len(index) == 0
