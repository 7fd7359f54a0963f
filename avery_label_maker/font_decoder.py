"""
Fallible table lookups over an embedded font, backed by fontTools.
"""

# Standard Library
import dataclasses
import hashlib
import io
from typing import Any, Callable

# PIP3 modules
import fontTools.ttLib

# local repo modules
import avery_label_maker as alm
import avery_label_maker.config


SFNT_MAGIC_NUMBERS = alm.config.SFNT_MAGIC_NUMBERS
CHECKSUM_BYTES = alm.config.CHECKSUM_BYTES


@dataclasses.dataclass(frozen=True)
class Lookup:
	value: Any = None
	error: str | None = None

	@property
	def ok(self) -> bool:
		return self.error is None


@dataclasses.dataclass(frozen=True)
class HeadInfo:
	units_per_em: int
	x_min: int
	y_min: int
	x_max: int
	y_max: int


#============================================
def describe_error(error: Exception) -> str:
	"""
	Format an exception for diagnostics.

	Args:
		error: Exception instance.

	Returns:
		Short "Type: message" string.
	"""
	message = str(error).strip()
	if not message:
		return type(error).__name__
	return f"{type(error).__name__}: {message}"


#============================================
def group_code_ranges(code_to_glyph: dict[int, int]) -> list[tuple[int, int, int]]:
	"""
	Collapse a code to glyph id mapping into contiguous groups.

	A group covers consecutive codes whose glyph ids are also consecutive,
	the same shape as a format 12 cmap subtable.

	Args:
		code_to_glyph: Mapping of character code to glyph id.

	Returns:
		List of (start_code, end_code, base_glyph) tuples in code order.
	"""
	groups: list[tuple[int, int, int]] = []
	for code in sorted(code_to_glyph):
		glyph_id = code_to_glyph[code]
		if groups:
			start_code, end_code, base_glyph = groups[-1]
			if code == end_code + 1 and glyph_id == base_glyph + (code - start_code):
				groups[-1] = (start_code, code, base_glyph)
				continue
		groups.append((code, code, glyph_id))
	return groups


class FontDecoder:
	"""
	Decode the tables of one font buffer.

	Every lookup is independent: a broken table only fails its own lookup,
	and none of them raise.
	"""

	def __init__(self, font_bytes: bytes):
		self.font = None
		self.open_error = None
		try:
			self.font = fontTools.ttLib.TTFont(io.BytesIO(bytes(font_bytes)), lazy=True)
		except Exception as error:
			self.open_error = describe_error(error)

	def _lookup(self, reader: Callable[[], Any]) -> Lookup:
		if self.font is None:
			return Lookup(error=self.open_error or "font not loaded")
		try:
			return Lookup(value=reader())
		except Exception as error:
			return Lookup(error=describe_error(error))

	def postscript_name(self) -> Lookup:
		"""
		Look up the PostScript name (name ID 6); the value is None when absent.
		"""
		return self._lookup(lambda: self.font["name"].getDebugName(6))

	def head(self) -> Lookup:
		def read_head() -> HeadInfo:
			table = self.font["head"]
			if table.unitsPerEm <= 0:
				raise ValueError(f"invalid unitsPerEm {table.unitsPerEm}")
			return HeadInfo(
				units_per_em=table.unitsPerEm,
				x_min=table.xMin,
				y_min=table.yMin,
				x_max=table.xMax,
				y_max=table.yMax,
			)
		return self._lookup(read_head)

	def hhea(self) -> Lookup:
		def read_hhea() -> tuple[int, int]:
			table = self.font["hhea"]
			return (table.ascent, table.descent)
		return self._lookup(read_hhea)

	def cmap_groups(self) -> Lookup:
		"""
		Look up the best Unicode cmap as contiguous (start, end, base_glyph) groups.
		"""
		def read_cmap() -> list[tuple[int, int, int]]:
			best_cmap = self.font.getBestCmap()
			if best_cmap is None:
				raise KeyError("no Unicode cmap subtable")
			code_to_glyph = {
				code: self.font.getGlyphID(glyph_name)
				for code, glyph_name in best_cmap.items()
			}
			return group_code_ranges(code_to_glyph)
		return self._lookup(read_cmap)

	def hmtx_entries(self) -> Lookup:
		"""
		Look up (glyph_id, advance_width) pairs, dropping left side bearings.
		"""
		def read_hmtx() -> list[tuple[int, int]]:
			hmtx = self.font["hmtx"]
			entries = []
			for glyph_id, glyph_name in enumerate(self.font.getGlyphOrder()):
				advance_width, _lsb = hmtx[glyph_name]
				entries.append((glyph_id, advance_width))
			return entries
		return self._lookup(read_hmtx)


#============================================
def is_sfnt_magic(font_bytes: bytes) -> bool:
	"""
	Check the first four bytes against known SFNT signatures.

	Args:
		font_bytes: Raw font bytes.

	Returns:
		True for TrueType, OpenType/CFF, Apple "true" or collection headers.
	"""
	return bytes(font_bytes[:4]) in SFNT_MAGIC_NUMBERS


#============================================
def describe_font_bytes(font_bytes: bytes) -> dict:
	"""
	Build an integrity report for a font buffer.

	Args:
		font_bytes: Raw font bytes.

	Returns:
		Dict with size, head/tail bytes, magic validity, checksum and sha256.
	"""
	size = len(font_bytes)
	if size >= 4:
		first_bytes = " ".join(f"{value:02X}" for value in font_bytes[:4])
		last_bytes = " ".join(f"{value:02X}" for value in font_bytes[-4:])
	else:
		first_bytes = "INSUFFICIENT_DATA"
		last_bytes = "INSUFFICIENT_DATA"
	return {
		"size": size,
		"first_bytes": first_bytes,
		"last_bytes": last_bytes,
		"valid_magic": is_sfnt_magic(font_bytes),
		"checksum": sum(font_bytes[:CHECKSUM_BYTES]),
		"sha256": hashlib.sha256(font_bytes).hexdigest(),
	}
