"""
Pytest configuration for local imports and in-memory test fonts.
"""

# Standard Library
import io
import os
import sys

# PIP3 modules
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

TEST_UNITS_PER_EM = 2000
TEST_POSTSCRIPT_NAME = "LabelTest-Regular"


#============================================
def build_test_font(units_per_em: int = TEST_UNITS_PER_EM, cff: bool = False) -> bytes:
	"""
	Build a TrueType, or CFF-flavoured OpenType, font covering printable ASCII.

	Glyph order is .notdef, space, then one glyph per code 33..126, so the
	glyph id of code c is c - 31. The advance width of code c is
	c * units_per_em / 100, which scales to 10 * c in 1000 units per em.
	The .notdef advance scales to 500.

	Args:
		units_per_em: Font units per em.
		cff: Build CFF outlines, so the file starts with "OTTO".

	Returns:
		Font file bytes.
	"""
	from fontTools.fontBuilder import FontBuilder
	from fontTools.pens.t2CharStringPen import T2CharStringPen
	from fontTools.ttLib.tables._g_l_y_f import Glyph

	glyph_names = [".notdef", "space"]
	cmap = {32: "space"}
	for code in range(33, 127):
		name = f"uni{code:04X}"
		glyph_names.append(name)
		cmap[code] = name

	fb = FontBuilder(units_per_em, isTTF=not cff)
	fb.setupGlyphOrder(glyph_names)
	fb.setupCharacterMap(cmap)

	metrics = {".notdef": (units_per_em // 2, 0)}
	for code, name in cmap.items():
		metrics[name] = (code * units_per_em // 100, 0)

	if cff:
		charstrings = {}
		for name in glyph_names:
			pen = T2CharStringPen(width=metrics[name][0], glyphSet=None)
			charstrings[name] = pen.getCharString()
		fb.setupCFF(
			psName=TEST_POSTSCRIPT_NAME,
			fontInfo={"FamilyName": "LabelTest", "FullName": "LabelTest Regular"},
			charStringsDict=charstrings,
			privateDict={},
		)
	else:
		empty = Glyph()
		fb.setupGlyf({name: empty for name in glyph_names})
	fb.setupHorizontalMetrics(metrics)

	fb.setupHorizontalHeader(ascent=units_per_em * 4 // 5, descent=-(units_per_em // 5))
	fb.setupNameTable({
		"familyName": "LabelTest",
		"styleName": "Regular",
		"psName": TEST_POSTSCRIPT_NAME,
	})
	fb.setupOS2(sTypoAscender=units_per_em * 4 // 5, sTypoDescender=-(units_per_em // 5))
	fb.setupPost()
	fb.setupHead(unitsPerEm=units_per_em)

	buffer = io.BytesIO()
	fb.font.save(buffer)
	return buffer.getvalue()


@pytest.fixture(scope="session")
def font_bytes() -> bytes:
	return build_test_font()


@pytest.fixture(scope="session")
def font_path(tmp_path_factory) -> str:
	path = tmp_path_factory.mktemp("fonts") / "LabelTest-Regular.ttf"
	path.write_bytes(build_test_font())
	return str(path)
