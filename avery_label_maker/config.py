"""
Shared configuration and constants.
"""

import dataclasses


FIRST_CHAR = 32
LAST_CHAR = 126
CHAR_TABLE_SIZE = 256

DEFAULT_CHAR_WIDTH = 600.0
FALLBACK_GLYPH_OFFSET = 29

FALLBACK_FONT_NAME = "XCCWJoined23a"
FALLBACK_BBOX = (-200.0, -200.0, 1200.0, 1000.0)
FALLBACK_UNITS_PER_EM = 1000.0
FALLBACK_ASCENT = 800.0
FALLBACK_DESCENT = -200.0

SUBSET_PREFIX = "CUSTOM+"
FONT_RESOURCE_NAME = "/F1"
FONT_FLAGS = 4
CAP_HEIGHT_FACTOR = 0.8
DEFAULT_STEM_V = 100.0
DEFAULT_MISSING_WIDTH = 600.0

TEXT_MARGIN = 3.0
CHECKBOX_MARGIN = 5.0
LINE_HEIGHT_FACTOR = 1.2
PARAGRAPH_ADVANCE_FACTOR = 1.5
AVERAGE_CHAR_WIDTH_FACTOR = 0.6
MAX_HEIGHT_FACTOR = 0.8

DEFAULT_FONT_SIZE = 12.0
DEFAULT_TEXT = "Date\nLO"
SMOKE_TEST_TEXT = (
	"Line 1: This is a longer test\n"
	"Line 2: Text with explicit line breaks\n"
	"Line 3: And automatic wrapping functionality"
)

MISSING_WIDTH_DEFAULT = "default"
MISSING_WIDTH_NOTDEF = "notdef"
MISSING_WIDTH_POLICIES = (MISSING_WIDTH_DEFAULT, MISSING_WIDTH_NOTDEF)

SFNT_MAGIC_NUMBERS = (b"\x00\x01\x00\x00", b"OTTO", b"true", b"ttcf")
CHECKSUM_BYTES = 100


@dataclasses.dataclass(frozen=True)
class LabelLayout:
	name: str
	label_width_mm: float
	label_height_mm: float
	cols: int
	rows: int
	margin_left_mm: float
	margin_top_mm: float
	spacing_x_mm: float
	spacing_y_mm: float
	description: str = ""

	@property
	def label_count(self) -> int:
		return self.cols * self.rows


@dataclasses.dataclass(frozen=True)
class FontMetrics:
	postscript_name: str
	bbox: tuple[float, float, float, float]
	units_per_em: float
	ascent: float
	descent: float
	defaulted: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True)
class FontWidths:
	code_to_glyph: tuple[tuple[int, int], ...]
	char_widths: tuple[float, ...]
	scale_factor: float
	glyph_source: str
	missing_codes: tuple[int, ...] = ()
	notes: tuple[str, ...] = ()


@dataclasses.dataclass
class LabelRequest:
	font_bytes: bytes
	text: str
	layout_name: str
	font_size: float = DEFAULT_FONT_SIZE
	show_borders: bool = False
	include_checkbox: bool = True
	missing_width_policy: str = MISSING_WIDTH_DEFAULT
	fallback_glyph_offset: int | None = FALLBACK_GLYPH_OFFSET


@dataclasses.dataclass
class RenderResult:
	pdf_bytes: bytes | None
	error: str | None
	layout: LabelLayout | None = None
	label_count: int = 0
	metrics: FontMetrics | None = None
	widths: FontWidths | None = None

	@property
	def ok(self) -> bool:
		return self.error is None and self.pdf_bytes is not None


AVERY_L7160 = LabelLayout(
	name="Avery L7160",
	label_width_mm=63.5,
	label_height_mm=38.1,
	cols=3,
	rows=7,
	margin_left_mm=7.0,
	margin_top_mm=15.0,
	spacing_x_mm=2.5,
	spacing_y_mm=0.0,
	description="21 labels, 63.5x38.1mm",
)

AVERY_L7162 = LabelLayout(
	name="Avery L7162",
	label_width_mm=99.1,
	label_height_mm=33.9,
	cols=2,
	rows=8,
	margin_left_mm=6.0,
	margin_top_mm=15.0,
	spacing_x_mm=0.0,
	spacing_y_mm=0.0,
	description="16 labels, 99.1x33.9mm",
)

# same sheet as L7160, sold under a different product code
AVERY_L7160_93 = dataclasses.replace(AVERY_L7160, name="Avery L7160-93")

LAYOUTS = (AVERY_L7160, AVERY_L7162, AVERY_L7160_93)
DEFAULT_LAYOUT = LAYOUTS[0]
