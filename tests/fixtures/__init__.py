"""Test doubles for the key-value store and the completion service."""

import fnmatch

import redis


class FakeRedis:
    """
    In-memory stand-in for the subset of ``redis.Redis`` the service uses.

    Set ``fail = True`` to make every call raise ``redis.ConnectionError``.
    TTLs are recorded, not enforced; tests expire keys with ``expire_now``.
    """

    def __init__(self):
        self.values = {}
        self.zsets = {}
        self.ttls = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("store unavailable")

    # strings
    def get(self, key):
        self._check()
        return self.values.get(key)

    def set(self, key, value, ex=None):
        self._check()
        self.values[key] = value
        if ex is not None:
            self.ttls[key] = ex
        else:
            self.ttls.pop(key, None)
        return True

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            removed += int(self.values.pop(key, None) is not None or self.zsets.pop(key, None) is not None)
            self.ttls.pop(key, None)
        return removed

    def ttl(self, key):
        self._check()
        if key not in self.values and key not in self.zsets:
            return -2
        return self.ttls.get(key, -1)

    def expire(self, key, seconds):
        self._check()
        self.ttls[key] = seconds
        return True

    def pexpire(self, key, milliseconds):
        self._check()
        self.ttls[key] = milliseconds / 1000
        return True

    def keys(self, pattern="*"):
        self._check()
        return [key for key in list(self.values) + list(self.zsets) if fnmatch.fnmatch(key, pattern)]

    def ping(self):
        self._check()
        return True

    def expire_now(self, key):
        self.values.pop(key, None)
        self.zsets.pop(key, None)
        self.ttls.pop(key, None)

    # sorted sets
    def zadd(self, key, mapping):
        self._check()
        zset = self.zsets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in zset)
        zset.update(mapping)
        return added

    def zrem(self, key, *members):
        self._check()
        zset = self.zsets.get(key, {})
        return sum(1 for member in members if zset.pop(member, None) is not None)

    def zremrangebyscore(self, key, minimum, maximum):
        self._check()
        zset = self.zsets.get(key, {})
        doomed = [member for member, score in zset.items() if minimum <= score <= maximum]
        for member in doomed:
            del zset[member]
        return len(doomed)

    def zcard(self, key):
        self._check()
        return len(self.zsets.get(key, {}))

    def zrange(self, key, start, end, withscores=False):
        self._check()
        ordered = sorted(self.zsets.get(key, {}).items(), key=lambda item: (item[1], item[0]))
        stop = None if end == -1 else end + 1
        selected = ordered[start:stop]
        if withscores:
            return [(member, float(score)) for member, score in selected]
        return [member for member, _ in selected]

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    """Queues calls and runs them against the parent `FakeRedis` on ``execute``."""

    def __init__(self, client):
        self._client = client
        self._calls = []

    def __getattr__(self, name):
        method = getattr(self._client, name)

        def queue(*args, **kwargs):
            self._calls.append((method, args, kwargs))
            return self

        return queue

    def execute(self):
        self._client._check()
        results = [method(*args, **kwargs) for method, args, kwargs in self._calls]
        self._calls = []
        return results


class ScriptedLLM:
    """
    Completion-service double.

    Replies are handed out in order; once exhausted (or for a ``None``
    entry) ``complete`` returns None, like the real client on failure.
    Every call is recorded in ``calls``.
    """

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    def complete(self, messages, model=None, temperature=0.7):
        self.calls.append({"messages": messages, "model": model, "temperature": temperature})
        if not self.replies:
            return None
        return self.replies.pop(0)
