import time

from portal.utils.view_tracker import MAX_COOKIE_BYTES, ViewedSlugs


def test_roundtrip_within_window():
    viewed = ViewedSlugs.load(None)
    viewed.mark("hello-world")

    again = ViewedSlugs.load(viewed.dumps())
    assert again.seen("hello-world")
    assert not again.changed


def test_expired_entries_are_pruned():
    viewed = ViewedSlugs()
    viewed.mark("old", now=time.time() - 86400 - 5)
    viewed.mark("fresh")

    again = ViewedSlugs.load(viewed.dumps())
    assert not again.seen("old")
    assert again.seen("fresh")
    assert again.changed


def test_tampered_cookie_is_ignored():
    viewed = ViewedSlugs()
    viewed.mark("a")
    raw = viewed.dumps()
    assert ViewedSlugs.load(raw + "tampered").entries == {}
    assert ViewedSlugs.load("garbage").entries == {}


def test_cookie_stays_under_browser_limit():
    words = ["budget", "election", "flood", "market", "startup", "festival", "transit", "harvest"]
    viewed = ViewedSlugs()
    now = time.time()
    slugs = [
        "-".join(words[(i + k) % len(words)] for k in range(6)) + f"-{i}"
        for i in range(1000)
    ]
    for i, slug in enumerate(slugs):
        viewed.mark(slug, now=now + i)
        assert len(viewed.dumps()) <= MAX_COOKIE_BYTES < 4096

    assert viewed.seen(slugs[-1])
    assert not viewed.seen(slugs[0])
    assert ViewedSlugs.load(viewed.dumps(), now=now + 1000).seen(slugs[-1])


def test_timestamps_are_whole_seconds():
    viewed = ViewedSlugs()
    viewed.mark("a", now=1700000000.987)
    assert viewed.entries == {"a": 1700000000}
