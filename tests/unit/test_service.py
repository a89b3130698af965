import sys
import tempfile
import threading
import unittest
from io import BytesIO
from pathlib import Path

from PIL import Image

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "cache"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from fontimage_core.config import RenderConfig
from fontimage_core.service import RenderService, create_render_service
from fontimage_renderer.errors import (
    DestinationUnwritable,
    FontUnavailable,
    InvalidColour,
    InvalidInput,
    StorageUnavailable,
    UnsupportedEnvironment,
)
from fontimage_renderer.models import TRANSPARENT, EmitBytes, WriteToPath

from glyph_fakes import FakeGlyphRenderer


class RenderServiceTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.fonts = self.tmp / "fonts"
        self.fonts.mkdir()
        (self.fonts / "arial.ttf").write_bytes(b"not really a font")
        self.cache = self.tmp / "cache"
        self.glyphs = FakeGlyphRenderer()
        self.service = RenderService(
            RenderConfig(font_directory=str(self.fonts), cache_directory=str(self.cache)),
            glyphs=self.glyphs,
        )
        self.service.set_font_size(40)

    def tearDown(self):
        self._tmp.cleanup()

    def _entries(self) -> list[Path]:
        return sorted(self.cache.rglob("*.cache.png"))

    def test_construction_bootstraps_cache(self):
        self.assertTrue((self.cache / "what_is_this.txt").is_file())

    def test_miss_then_hit(self):
        first = self.service.generate("A")
        self.assertTrue(first.success)
        self.assertFalse(first.cache_hit)
        self.assertEqual(first.content_type, "image/png")
        self.assertEqual(self._entries(), [self.cache / "arial" / f"{first.fingerprint}.cache.png"])

        calls = self.glyphs.rasterize_calls
        second = self.service.generate("A")
        self.assertTrue(second.cache_hit)
        self.assertEqual(second.data, first.data)
        self.assertEqual(self.glyphs.rasterize_calls, calls)

    def test_changed_field_is_a_miss(self):
        first = self.service.generate("A")
        self.service.set_font_angle(15)
        second = self.service.generate("A")
        self.assertFalse(second.cache_hit)
        self.assertNotEqual(first.fingerprint, second.fingerprint)
        self.assertEqual(len(self._entries()), 2)

    def test_render_is_deterministic_without_cache(self):
        self.service.cache_enable(False)
        a = self.service.generate("Hello world")
        b = self.service.generate("Hello world")
        self.assertEqual(a.data, b.data)
        self.assertFalse(a.cache_hit or b.cache_hit)
        self.assertEqual(self._entries(), [])

    def test_bypass_cache_skips_lookup_and_store(self):
        result = self.service.generate("A", bypass_cache=True)
        self.assertTrue(result.success)
        self.assertEqual(self._entries(), [])
        self.service.generate("A")
        again = self.service.generate("A", bypass_cache=True)
        self.assertFalse(again.cache_hit)

    def test_cache_write_failure_still_returns_image(self):
        (self.cache / "arial").write_text("blocks the font folder", encoding="utf-8")
        result = self.service.generate("A")
        self.assertTrue(result.success)
        self.assertIsNotNone(result.data)
        with Image.open(BytesIO(result.data)) as image:
            self.assertEqual(image.format, "PNG")
        self.assertIn("cache_store_failed", [e["event"] for e in self.service.recent_events()])

    def test_corrupt_entry_is_rerendered_and_overwritten(self):
        first = self.service.generate("A")
        path = self._entries()[0]
        path.write_bytes(b"garbage")
        second = self.service.generate("A")
        self.assertFalse(second.cache_hit)
        self.assertEqual(second.data, first.data)
        self.assertEqual(path.read_bytes(), first.data)

    def test_missing_font(self):
        self.service.set_font("missing")
        result = self.service.generate("A")
        self.assertFalse(result.success)
        self.assertIsInstance(result.error, FontUnavailable)
        self.assertIsNone(result.data)
        self.assertEqual(self._entries(), [])
        self.assertFalse((self.cache / "missing").exists())

    def test_unwritable_destination_fails_before_rendering(self):
        result = self.service.generate("A", WriteToPath(self.tmp / "no" / "such" / "dir" / "out.png"))
        self.assertFalse(result.success)
        self.assertIsInstance(result.error, DestinationUnwritable)
        self.assertEqual(self.glyphs.rasterize_calls, 0)
        self.assertEqual(self._entries(), [])

    def test_write_to_path(self):
        out = self.tmp / "out.png"
        result = self.service.generate("A", WriteToPath(out))
        self.assertTrue(result.success)
        self.assertEqual(result.path, out)
        self.assertEqual(out.read_bytes(), result.data)

        hit = self.service.generate("A", WriteToPath(out))
        self.assertTrue(hit.cache_hit)
        self.assertEqual(out.read_bytes(), result.data)

    def test_emit_to_stream(self):
        stream = BytesIO()
        result = self.service.generate("A", EmitBytes(stream=stream))
        self.assertEqual(stream.getvalue(), result.data)

    def test_wrapping_adds_lines(self):
        self.service.set_font_size(12)
        self.service.set_size(width=100)
        self.service.use_wrapping(True)
        result = self.service.generate("AAAAAAAAAAAAAAA BB")
        with Image.open(BytesIO(result.data)) as image:
            self.assertEqual(image.size, (100, 24))

        self.service.use_wrapping(False)
        unwrapped = self.service.generate("AAAAAAAAAAAAAAA BB")
        with Image.open(BytesIO(unwrapped.data)) as image:
            self.assertEqual(image.size, (100, 12))

    def test_height_cap_alone_does_not_wrap(self):
        self.service.set_font_size(12)
        self.service.set_size(height=30)
        self.service.use_wrapping(True)
        result = self.service.generate("AAAAAAAAAAAAAAA BB")
        with Image.open(BytesIO(result.data)) as image:
            self.assertEqual(image.size, (180, 30))

    def test_numeric_setters(self):
        self.service.set_font_size("20")
        self.service.set_font_angle(12.9)
        self.assertEqual(self.service.config.font_size, 20)
        self.assertEqual(self.service.config.angle, 12)
        with self.assertRaises(InvalidInput):
            self.service.set_font_size("20", strict=True)
        with self.assertRaises(InvalidInput):
            self.service.set_font_angle("abc")
        with self.assertRaises(InvalidInput):
            self.service.set_font_size(0)
        with self.assertRaises(InvalidInput):
            self.service.set_size(width="wide")

    def test_size_setters(self):
        self.service.set_size(120, 40)
        self.service.set_size(height=50)
        cfg = self.service.config
        self.assertEqual((cfg.width, cfg.height), (120, 50))
        self.service.clear_size()
        cfg = self.service.config
        self.assertEqual((cfg.width, cfg.height), (None, None))

    def test_font_setters(self):
        self.service.set_font("comic")
        self.assertEqual(self.service.config.font, "comic.ttf")
        self.service.set_font("mono.otf")
        self.assertEqual(self.service.config.font, "mono.otf")
        with self.assertRaises(InvalidInput):
            self.service.set_font("../arial.ttf")
        with self.assertRaises(FontUnavailable):
            self.service.set_font_directory(self.tmp / "nowhere")

    def test_colour_setter(self):
        self.service.set_colour("#FFF", "#000")
        cfg = self.service.config
        self.assertEqual((cfg.text_colour, cfg.background_colour), ((255, 255, 255), (0, 0, 0)))
        self.service.set_colour(None)
        self.assertEqual(self.service.config.text_colour, (255, 255, 255))
        self.assertIs(self.service.config.background_colour, TRANSPARENT)
        with self.assertRaises(InvalidColour):
            self.service.set_colour("#FF")

    def test_cache_directory_setter(self):
        with self.assertRaises(InvalidInput):
            self.service.set_cache_directory("")
        blocker = self.tmp / "file"
        blocker.write_text("x", encoding="utf-8")
        with self.assertRaises(StorageUnavailable):
            self.service.set_cache_directory(blocker)
        self.assertEqual(self.service.config.cache_directory, str(self.cache))

        other = self.tmp / "other-cache"
        self.service.set_cache_directory(other)
        self.assertTrue((other / "what_is_this.txt").is_file())
        self.service.generate("A")
        self.assertEqual(len(list(other.rglob("*.cache.png"))), 1)

    def test_config_snapshot_is_isolated(self):
        snapshot = self.service.config
        snapshot.font_size = 99
        self.assertEqual(self.service.config.font_size, 40)
        self.assertEqual(self.service.snapshot_request("x").font_size, 40)

    def test_switching_font_directory_is_a_miss(self):
        first = self.service.generate("A")
        other = self.tmp / "other-fonts"
        other.mkdir()
        (other / "arial.ttf").write_bytes(b"a different font")
        self.service.set_font_directory(other)

        second = self.service.generate("A")
        self.assertTrue(second.success)
        self.assertFalse(second.cache_hit)
        self.assertNotEqual(first.fingerprint, second.fingerprint)
        self.assertEqual(len(self._entries()), 2)

        self.service.set_font_directory(self.fonts)
        self.assertTrue(self.service.generate("A").cache_hit)

    def test_undecodable_text_is_a_typed_failure(self):
        result = self.service.generate("caf\udce9")
        self.assertFalse(result.success)
        self.assertIsInstance(result.error, InvalidInput)
        self.assertIsNone(result.data)
        self.assertEqual(self.glyphs.rasterize_calls, 0)
        self.assertEqual(self._entries(), [])
        self.assertEqual(self.service.recent_events()[-1]["code"], "invalid_input")

    def test_event_log_is_bounded_across_threads(self):
        def worker():
            for _ in range(300):
                self.service.generate("A")

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        events = self.service.recent_events(limit=5000)
        self.assertEqual(len(events), 1000)
        events.clear()
        self.assertEqual(len(self.service.recent_events()), 200)


class FactoryTests(unittest.TestCase):
    def test_unsupported_environment(self):
        result = create_render_service(RenderConfig(cache_enabled=False), glyphs=FakeGlyphRenderer(supported=False))
        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, UnsupportedEnvironment)

    def test_cache_bootstrap_failure(self):
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "cache"
            blocker.write_text("x", encoding="utf-8")
            result = create_render_service(RenderConfig(cache_directory=str(blocker)), glyphs=FakeGlyphRenderer())
            self.assertFalse(result.ok)
            self.assertIsInstance(result.error, StorageUnavailable)

    def test_success(self):
        with tempfile.TemporaryDirectory() as tmp:
            result = create_render_service(RenderConfig(cache_directory=tmp), glyphs=FakeGlyphRenderer())
            self.assertTrue(result.ok)
            self.assertIsNone(result.error)
            self.assertIsNotNone(result.service.cache_store)


if __name__ == "__main__":
    unittest.main()
