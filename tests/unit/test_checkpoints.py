"""
Unit tests for governance/checkpoints.py.
"""

import pytest

from governance.checkpoints import VoteCheckpoints


@pytest.fixture
def checkpoints():
    cp = VoteCheckpoints()
    cp.write("alice", 100, 10)
    cp.write("alice", 250, 20)
    cp.write("alice", 50, 30)
    return cp


class TestVoteCheckpoints:
    def test_unknown_account(self):
        cp = VoteCheckpoints()
        assert cp.get_current_votes("bob") == 0
        assert cp.get_prior_votes("bob", 100) == 0

    def test_current(self, checkpoints):
        assert checkpoints.get_current_votes("alice") == 50

    @pytest.mark.parametrize("block,expected", [
        (9, 0),
        (10, 100),
        (15, 100),
        (20, 250),
        (29, 250),
        (30, 50),
        (1_000, 50),
    ])
    def test_prior_votes(self, checkpoints, block, expected):
        assert checkpoints.get_prior_votes("alice", block) == expected

    def test_long_history(self):
        cp = VoteCheckpoints()
        for block in range(0, 2_000, 2):
            cp.write("alice", block * 10, block)
        assert cp.num_checkpoints("alice") == 1_000
        assert cp.get_prior_votes("alice", 0) == 0
        assert cp.get_prior_votes("alice", 1) == 0
        assert cp.get_prior_votes("alice", 2) == 20
        assert cp.get_prior_votes("alice", 1_001) == 10_000
        assert cp.get_prior_votes("alice", 1_998) == 19_980
        assert cp.get_prior_votes("alice", 5_000) == 19_980

    def test_same_block_overwrites(self, checkpoints):
        checkpoints.write("alice", 75, 30)
        assert checkpoints.num_checkpoints("alice") == 3
        assert checkpoints.get_prior_votes("alice", 30) == 75

    def test_heights_monotonic(self, checkpoints):
        with pytest.raises(ValueError):
            checkpoints.write("alice", 1, 29)

    def test_negative_votes(self):
        with pytest.raises(ValueError):
            VoteCheckpoints().write("alice", -1, 1)

    def test_snapshot_restore(self, checkpoints):
        snap = checkpoints.snapshot()
        checkpoints.write("alice", 0, 40)
        checkpoints.restore(snap)
        assert checkpoints.get_current_votes("alice") == 50
        assert checkpoints.num_checkpoints("alice") == 3
