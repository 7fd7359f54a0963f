"""
Font metrics, character map and advance width extraction.

Both extractors decode the font on their own and never fail: every table
that cannot be read is replaced by a documented fallback, and the fields
that were defaulted are recorded on the returned dataclass.
"""

# local repo modules
import avery_label_maker as alm
import avery_label_maker.config
import avery_label_maker.font_decoder


FontMetrics = alm.config.FontMetrics
FontWidths = alm.config.FontWidths
FontDecoder = alm.font_decoder.FontDecoder

FIRST_CHAR = alm.config.FIRST_CHAR
LAST_CHAR = alm.config.LAST_CHAR
CHAR_TABLE_SIZE = alm.config.CHAR_TABLE_SIZE
DEFAULT_CHAR_WIDTH = alm.config.DEFAULT_CHAR_WIDTH
FALLBACK_GLYPH_OFFSET = alm.config.FALLBACK_GLYPH_OFFSET
FALLBACK_FONT_NAME = alm.config.FALLBACK_FONT_NAME
FALLBACK_BBOX = alm.config.FALLBACK_BBOX
FALLBACK_UNITS_PER_EM = alm.config.FALLBACK_UNITS_PER_EM
FALLBACK_ASCENT = alm.config.FALLBACK_ASCENT
FALLBACK_DESCENT = alm.config.FALLBACK_DESCENT
MISSING_WIDTH_DEFAULT = alm.config.MISSING_WIDTH_DEFAULT
MISSING_WIDTH_NOTDEF = alm.config.MISSING_WIDTH_NOTDEF
MISSING_WIDTH_POLICIES = alm.config.MISSING_WIDTH_POLICIES

DEFAULT_FONT_METRICS = FontMetrics(
	postscript_name=FALLBACK_FONT_NAME,
	bbox=FALLBACK_BBOX,
	units_per_em=FALLBACK_UNITS_PER_EM,
	ascent=FALLBACK_ASCENT,
	descent=FALLBACK_DESCENT,
	defaulted=("postscript_name", "bbox", "ascent"),
)


#============================================
def default_char_widths() -> tuple[float, ...]:
	"""
	Build the all-default width table.

	Returns:
		Tuple of CHAR_TABLE_SIZE default widths.
	"""
	return (DEFAULT_CHAR_WIDTH,) * CHAR_TABLE_SIZE


#============================================
def extract_font_metrics(font_bytes: bytes) -> FontMetrics:
	"""
	Read the PostScript name, bounding box, ascent and descent of a font.

	Values are normalized to a 1000 units per em space. Each of the three
	table reads falls back independently.

	Args:
		font_bytes: Raw font bytes.

	Returns:
		FontMetrics, with fallback fields listed in `defaulted`.
	"""
	try:
		decoder = FontDecoder(font_bytes)
		defaulted = []

		name_lookup = decoder.postscript_name()
		if name_lookup.ok and name_lookup.value:
			postscript_name = name_lookup.value
		else:
			postscript_name = FALLBACK_FONT_NAME
			defaulted.append("postscript_name")

		head_lookup = decoder.head()
		if head_lookup.ok:
			head = head_lookup.value
			units_per_em = float(head.units_per_em)
			scale = 1000.0 / units_per_em
			bbox = (
				head.x_min * scale,
				head.y_min * scale,
				head.x_max * scale,
				head.y_max * scale,
			)
		else:
			units_per_em = FALLBACK_UNITS_PER_EM
			bbox = FALLBACK_BBOX
			defaulted.append("bbox")

		hhea_lookup = decoder.hhea()
		if hhea_lookup.ok:
			ascender, descender = hhea_lookup.value
			scale = 1000.0 / units_per_em
			ascent = ascender * scale
			descent = descender * scale
		else:
			ascent = FALLBACK_ASCENT
			descent = FALLBACK_DESCENT
			defaulted.append("ascent")
	except Exception:
		return DEFAULT_FONT_METRICS

	return FontMetrics(
		postscript_name=postscript_name,
		bbox=bbox,
		units_per_em=units_per_em,
		ascent=ascent,
		descent=descent,
		defaulted=tuple(defaulted),
	)


#============================================
def map_codes_from_groups(groups: list[tuple[int, int, int]]) -> dict[int, int]:
	"""
	Expand contiguous cmap groups into printable ASCII code to glyph pairs.

	Args:
		groups: List of (start_code, end_code, base_glyph).

	Returns:
		Dict of code to glyph id for codes FIRST_CHAR..LAST_CHAR.
	"""
	code_to_glyph = {}
	for start_code, end_code, base_glyph in groups:
		for code in range(start_code, min(end_code, CHAR_TABLE_SIZE - 1) + 1):
			if FIRST_CHAR <= code <= LAST_CHAR:
				code_to_glyph[code] = base_glyph + (code - start_code)
	return code_to_glyph


#============================================
def map_codes_by_offset(offset: int) -> dict[int, int]:
	"""
	Guess glyph ids as code minus a fixed offset.

	The default offset fits one reference font only; other fonts get
	plausible but wrong glyph ids.

	Args:
		offset: Glyph id offset.

	Returns:
		Dict of code to glyph id for codes FIRST_CHAR..LAST_CHAR.
	"""
	return {code: code - offset for code in range(FIRST_CHAR, LAST_CHAR + 1)}


#============================================
def extract_cmap_and_widths(
	font_bytes: bytes,
	missing_width_policy: str = MISSING_WIDTH_DEFAULT,
	fallback_glyph_offset: int | None = FALLBACK_GLYPH_OFFSET,
) -> FontWidths:
	"""
	Build the code to glyph map and the 256 entry scaled width table.

	Args:
		font_bytes: Raw font bytes.
		missing_width_policy: "default" keeps DEFAULT_CHAR_WIDTH for glyphs with
			no recorded width, "notdef" uses the width of glyph 0 instead.
		fallback_glyph_offset: Offset used to guess glyph ids when the cmap
			cannot be read, or None to leave the map empty.

	Returns:
		FontWidths.
	"""
	if missing_width_policy not in MISSING_WIDTH_POLICIES:
		raise ValueError(f"unknown missing width policy: {missing_width_policy}")

	try:
		decoder = FontDecoder(font_bytes)
		notes = []

		cmap_lookup = decoder.cmap_groups()
		if cmap_lookup.ok:
			code_to_glyph = map_codes_from_groups(cmap_lookup.value)
			glyph_source = "cmap"
		elif fallback_glyph_offset is not None:
			code_to_glyph = map_codes_by_offset(fallback_glyph_offset)
			glyph_source = "offset"
			notes.append(
				f"cmap unreadable ({cmap_lookup.error}), "
				f"guessed glyph = code - {fallback_glyph_offset}"
			)
		else:
			code_to_glyph = {}
			glyph_source = "none"
			notes.append(f"cmap unreadable ({cmap_lookup.error}), no glyph mapping")

		glyph_widths: dict[int, int] = {}
		hmtx_lookup = decoder.hmtx_entries()
		if hmtx_lookup.ok:
			for glyph_id, advance_width in hmtx_lookup.value:
				glyph_widths[glyph_id] = advance_width
		else:
			notes.append(f"hmtx unreadable ({hmtx_lookup.error}), using default widths")

		head_lookup = decoder.head()
		if head_lookup.ok:
			scale_factor = 1000.0 / head_lookup.value.units_per_em
		else:
			scale_factor = 1.0
			notes.append(f"head unreadable ({head_lookup.error}), scale factor 1.0")

		missing_width = DEFAULT_CHAR_WIDTH
		if missing_width_policy == MISSING_WIDTH_NOTDEF and 0 in glyph_widths:
			missing_width = glyph_widths[0] * scale_factor

		widths = [DEFAULT_CHAR_WIDTH] * CHAR_TABLE_SIZE
		missing_codes = []
		for code, glyph_id in sorted(code_to_glyph.items()):
			raw_width = glyph_widths.get(glyph_id)
			if raw_width is None:
				missing_codes.append(code)
				widths[code] = missing_width
				continue
			widths[code] = max(0.0, raw_width * scale_factor)
		if missing_codes:
			notes.append(f"{len(missing_codes)} mapped codes have no glyph width")
	except Exception as error:
		return FontWidths(
			code_to_glyph=(),
			char_widths=default_char_widths(),
			scale_factor=1.0,
			glyph_source="none",
			notes=(f"width extraction failed: {alm.font_decoder.describe_error(error)}",),
		)

	return FontWidths(
		code_to_glyph=tuple(sorted(code_to_glyph.items())),
		char_widths=tuple(widths),
		scale_factor=scale_factor,
		glyph_source=glyph_source,
		missing_codes=tuple(missing_codes),
		notes=tuple(notes),
	)
