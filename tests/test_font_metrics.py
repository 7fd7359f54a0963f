import pytest

import avery_label_maker as alm
import avery_label_maker.config
import avery_label_maker.font_decoder
import avery_label_maker.font_metrics

import conftest


Lookup = alm.font_decoder.Lookup
FontDecoder = alm.font_decoder.FontDecoder


#============================================
def test_metrics_decoded_from_font(font_bytes: bytes) -> None:
	"""
	Name, ascent and descent come from the font and are normalized to 1000 units.
	"""
	metrics = alm.font_metrics.extract_font_metrics(font_bytes)
	assert metrics.postscript_name == conftest.TEST_POSTSCRIPT_NAME
	assert metrics.units_per_em == 2000.0
	assert metrics.ascent == pytest.approx(800.0)
	assert metrics.descent == pytest.approx(-200.0)
	assert len(metrics.bbox) == 4
	assert metrics.defaulted == ()


#============================================
@pytest.mark.parametrize("data", [b"", b"not a font at all", b"\x00\x01\x00\x00" + b"\x00" * 8])
def test_metrics_fall_back_for_unreadable_font(data: bytes) -> None:
	"""
	Unreadable buffers yield the documented defaults without raising.
	"""
	metrics = alm.font_metrics.extract_font_metrics(data)
	assert metrics.postscript_name == alm.config.FALLBACK_FONT_NAME
	assert metrics.bbox == alm.config.FALLBACK_BBOX
	assert metrics.units_per_em == alm.config.FALLBACK_UNITS_PER_EM
	assert metrics.ascent == alm.config.FALLBACK_ASCENT
	assert metrics.descent == alm.config.FALLBACK_DESCENT
	assert set(metrics.defaulted) == {"postscript_name", "bbox", "ascent"}


#============================================
def test_metrics_fields_fall_back_independently(font_bytes: bytes, monkeypatch) -> None:
	"""
	A broken hhea table only defaults ascent and descent.
	"""
	monkeypatch.setattr(FontDecoder, "hhea", lambda self: Lookup(error="hhea broken"))
	metrics = alm.font_metrics.extract_font_metrics(font_bytes)
	assert metrics.postscript_name == conftest.TEST_POSTSCRIPT_NAME
	assert metrics.defaulted == ("ascent",)
	assert metrics.ascent == alm.config.FALLBACK_ASCENT
	assert metrics.descent == alm.config.FALLBACK_DESCENT


#============================================
def test_absent_postscript_name_uses_fallback(font_bytes: bytes, monkeypatch) -> None:
	"""
	A font without name ID 6 gets the fallback name.
	"""
	monkeypatch.setattr(FontDecoder, "postscript_name", lambda self: Lookup(value=None))
	metrics = alm.font_metrics.extract_font_metrics(font_bytes)
	assert metrics.postscript_name == alm.config.FALLBACK_FONT_NAME
	assert metrics.defaulted == ("postscript_name",)


#============================================
def test_head_lookup_scales_bbox(monkeypatch) -> None:
	"""
	Bounding box corners are scaled by 1000 / unitsPerEm.
	"""
	head = alm.font_decoder.HeadInfo(units_per_em=2048, x_min=-512, y_min=-1024, x_max=2048, y_max=1536)
	monkeypatch.setattr(FontDecoder, "head", lambda self: Lookup(value=head))
	metrics = alm.font_metrics.extract_font_metrics(conftest.build_test_font())
	assert metrics.bbox == pytest.approx((-250.0, -500.0, 1000.0, 750.0))
	assert metrics.units_per_em == 2048.0


#============================================
def test_decoder_lookups_report_errors() -> None:
	"""
	Every lookup on a bad buffer fails with the open error.
	"""
	decoder = FontDecoder(b"garbage")
	assert decoder.font is None
	for lookup in (
		decoder.postscript_name(),
		decoder.head(),
		decoder.hhea(),
		decoder.cmap_groups(),
		decoder.hmtx_entries(),
	):
		assert not lookup.ok
		assert lookup.error == decoder.open_error


#============================================
def test_describe_font_bytes(font_bytes: bytes) -> None:
	"""
	The integrity report recognizes TrueType magic and short buffers.
	"""
	report = alm.font_decoder.describe_font_bytes(font_bytes)
	assert report["size"] == len(font_bytes)
	assert report["first_bytes"] == "00 01 00 00"
	assert report["valid_magic"] is True
	assert report["checksum"] == sum(font_bytes[:100])

	short = alm.font_decoder.describe_font_bytes(b"ab")
	assert short["first_bytes"] == "INSUFFICIENT_DATA"
	assert short["valid_magic"] is False
