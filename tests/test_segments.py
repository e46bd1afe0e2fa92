import asyncio
import itertools
import unittest

from offerseed.segments import (
    SEGMENT_INTERVALS,
    SEGMENT_KINDS,
    Segment,
    segment_id,
    string_hash,
    write_segments,
)


class RecordingExecutor:
    def __init__(self):
        self.statements = []

    async def execute(self, sql, params=()):
        self.statements.append((sql, list(params)))


class StringHashTests(unittest.TestCase):
    def test_known_values(self):
        self.assertEqual(string_hash(""), 5381)
        self.assertEqual(string_hash("a"), 177604)
        self.assertEqual(string_hash("ab"), 5861062)

    def test_lone_surrogate_hashes_as_a_single_code_unit(self):
        # 0xD83D is the high half of an emoji pair
        self.assertEqual(string_hash("\ud83d"), 159128)
        seg = Segment("day", "purchase", "\ud83d")
        self.assertEqual(segment_id(seg), string_hash("day-purchase-\ud83d"))

    def test_stays_in_unsigned_32_bit_range(self):
        for text in ("x" * 1000, "month-request-bluebottle.coffee", "día-ümlaut-€", "🙂" * 50):
            h = string_hash(text)
            self.assertGreaterEqual(h, 0)
            self.assertLess(h, 2**32)


class SegmentIdTests(unittest.TestCase):
    def test_is_deterministic(self):
        seg = Segment(interval="hour", kind="olc_8", value="87G7PX7V")
        self.assertEqual(segment_id(seg), segment_id(Segment("hour", "olc_8", "87G7PX7V")))

    def test_hashes_interval_kind_value_joined_by_dashes(self):
        seg = Segment(interval="day", kind="purchase", value="Starbucks")
        self.assertEqual(segment_id(seg), string_hash("day-purchase-Starbucks"))

    def test_distinct_triples_do_not_collide(self):
        values = [f"vendor{i}" for i in range(10)]
        segments = [
            Segment(interval, kind, value)
            for interval, kind, value in itertools.product(SEGMENT_INTERVALS, SEGMENT_KINDS, values)
        ]
        self.assertEqual(len(segments), 200)
        ids = {segment_id(s) for s in segments}
        self.assertEqual(len(ids), len(segments))


class WriteSegmentsTests(unittest.TestCase):
    def test_writes_one_upsert_with_derived_ids(self):
        executor = RecordingExecutor()
        segs = [Segment("minute", "request", "etsy.com"), Segment("week", "olc_6", "87G7PX")]

        asyncio.run(write_segments(executor, segs))

        self.assertEqual(len(executor.statements), 1)
        sql, params = executor.statements[0]
        self.assertTrue(sql.startswith("INSERT INTO segments (segment_id, valid_interval, filter_kind, filter_value)"))
        self.assertIn("ON CONFLICT (segment_id) DO UPDATE", sql)
        self.assertEqual(
            params,
            [
                segment_id(segs[0]), "minute", "request", "etsy.com",
                segment_id(segs[1]), "week", "olc_6", "87G7PX",
            ],
        )

    def test_repeated_segments_are_written_once(self):
        executor = RecordingExecutor()
        seg = Segment("day", "purchase", "Zara")

        asyncio.run(write_segments(executor, [seg, seg, seg]))

        _, params = executor.statements[0]
        self.assertEqual(params, [segment_id(seg), "day", "purchase", "Zara"])

    def test_empty_input_executes_nothing(self):
        executor = RecordingExecutor()
        asyncio.run(write_segments(executor, []))
        self.assertEqual(executor.statements, [])
