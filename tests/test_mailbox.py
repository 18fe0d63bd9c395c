import os
import tempfile
import unittest
from unittest.mock import patch

from backend.mailbox import ChatMessage, MemoryMailbox, RedisMailbox, SqlMailbox, build_mailbox, new_message_id


def _msg(text: str) -> ChatMessage:
    return ChatMessage(id=new_message_id(), text=text, senderName="Vendedor", timestamp=1700000000000)


class FakePipeline:
    def __init__(self, store):
        self.store = store
        self.ops = []

    def lrange(self, key, start, end):
        self.ops.append(("lrange", key))
        return self

    def delete(self, key):
        self.ops.append(("delete", key))
        return self

    def execute(self):
        out = []
        for op, key in self.ops:
            if op == "lrange":
                out.append(list(self.store.get(key, [])))
            else:
                out.append(1 if self.store.pop(key, None) is not None else 0)
        return out


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.transactions = []

    def rpush(self, key, value):
        self.store.setdefault(key, []).append(value)
        return len(self.store[key])

    def llen(self, key):
        return len(self.store.get(key, []))

    def pipeline(self, transaction=True):
        self.transactions.append(transaction)
        return FakePipeline(self.store)


class MailboxContract:
    def make(self):
        raise NotImplementedError

    def test_drain_returns_append_order(self):
        box = self.make()
        for t in ("uno", "dos", "tres"):
            box.append(_msg(t))
        self.assertEqual([m.text for m in box.drain()], ["uno", "dos", "tres"])

    def test_second_drain_is_empty(self):
        box = self.make()
        box.append(_msg("hola"))
        self.assertEqual(len(box.drain()), 1)
        self.assertEqual(box.drain(), [])

    def test_append_after_drain_is_kept(self):
        box = self.make()
        box.append(_msg("a"))
        box.drain()
        box.append(_msg("b"))
        self.assertEqual(box.pending(), 1)
        self.assertEqual([m.text for m in box.drain()], ["b"])

    def test_fields_survive_storage(self):
        box = self.make()
        m = _msg("¿Tienen envío?")
        box.append(m)
        out = box.drain()[0]
        self.assertEqual(out, m)
        self.assertEqual(out.status, "delivered")


class TestMemoryMailbox(MailboxContract, unittest.TestCase):
    def make(self):
        return MemoryMailbox()


class TestRedisMailbox(MailboxContract, unittest.TestCase):
    def make(self):
        self.redis = FakeRedis()
        return RedisMailbox(self.redis, key="test:mailbox")

    def test_drain_uses_transaction(self):
        box = self.make()
        box.append(_msg("x"))
        box.drain()
        self.assertEqual(self.redis.transactions, [True])

    def test_unreadable_entries_are_dropped(self):
        box = self.make()
        self.redis.rpush("test:mailbox", "not json")
        box.append(_msg("ok"))
        self.assertEqual([m.text for m in box.drain()], ["ok"])


class TestSqlMailbox(MailboxContract, unittest.TestCase):
    def make(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        box = SqlMailbox("sqlite:///" + os.path.join(tmp.name, "mailbox.db"))
        self.addCleanup(box.engine.dispose)
        return box

    def test_row_missed_by_select_stays_queued(self):
        box = self.make()
        box.append(_msg("early"))
        box.append(_msg("late"))
        real_select = box._select_rows

        # The lower seq was still uncommitted when the drain read the table
        def select_without_first(conn):
            return real_select(conn)[1:]

        with patch.object(box, "_select_rows", side_effect=select_without_first):
            self.assertEqual([m.text for m in box.drain()], ["late"])
        self.assertEqual(box.pending(), 1)
        self.assertEqual([m.text for m in box.drain()], ["early"])


class TestBuildMailbox(unittest.TestCase):
    def test_memory_is_default(self):
        self.assertIsInstance(build_mailbox("memory"), MemoryMailbox)

    def test_unknown_backend(self):
        with self.assertRaises(RuntimeError):
            build_mailbox("carrier-pigeon")


if __name__ == "__main__":
    unittest.main()
