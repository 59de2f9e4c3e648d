"""
Concurrent first-writers on ``/settings/admins``.

The evaluator only states the rule. When the store runs check-and-commit
atomically exactly one claimant wins; when the same stale snapshot is fed to
both evaluations, both are allowed, which is why the store must be
transactional.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from docrules.evaluator import evaluate
from docrules.model import AuthContext, DenyReason, DocumentSnapshot, Operation


def test_transactional_store_admits_one_claimant(env):
    claimants = ["apple", "banana", "cherry", "durian"]
    barrier = threading.Barrier(len(claimants))

    def claim(uid):
        client = env.client(uid)
        barrier.wait()
        return uid, client.set("/settings/admins", {uid: ["root"]})

    with ThreadPoolExecutor(max_workers=len(claimants)) as pool:
        results = dict(pool.map(claim, claimants))

    winners = [uid for uid, d in results.items() if d.allowed]
    assert len(winners) == 1
    assert env.data("/settings/admins") == {winners[0]: ["root"]}
    for uid, d in results.items():
        if uid != winners[0]:
            assert d.reason is DenyReason.ROOT_ALREADY_CLAIMED


def test_loser_retry_sees_established_roster(env):
    assert env.client("apple").set("/settings/admins", {"apple": ["root"]}).allowed
    retry = env.client("banana").set("/settings/admins", {"banana": ["root"]})
    assert retry.reason is DenyReason.ROOT_ALREADY_CLAIMED


def test_stale_snapshot_allows_both(registry):
    stale = DocumentSnapshot.missing()
    for uid in ("U", "V"):
        d = evaluate(registry, "/settings/admins", Operation.CREATE, AuthContext(uid=uid), stale, {uid: ["root"]})
        assert d.allowed


def test_shared_registry_concurrent_reads(registry):
    def read(i):
        return evaluate(registry, f"/users/u{i}", Operation.READ).allowed

    with ThreadPoolExecutor(max_workers=8) as pool:
        assert all(pool.map(read, range(200)))
