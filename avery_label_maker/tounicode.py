"""
ToUnicode CMap text for single byte simple fonts.
"""

# local repo modules
import avery_label_maker as alm
import avery_label_maker.config


FIRST_CHAR = alm.config.FIRST_CHAR
LAST_CHAR = alm.config.LAST_CHAR


#============================================
def build_tounicode_cmap(char_mappings: list[tuple[int, int]], cmap_name: str) -> str:
	"""
	Build a ToUnicode CMap mapping each byte code to the same UTF-16BE value.

	The identity mapping is only correct for basic Latin codes.

	Args:
		char_mappings: (code, glyph_id) pairs; only the codes are used.
		cmap_name: CMap resource name, also used as registry and ordering.

	Returns:
		CMap program text.
	"""
	codes = sorted({code for code, _glyph_id in char_mappings})
	if not codes:
		codes = list(range(FIRST_CHAR, LAST_CHAR + 1))

	lines = [
		"/CIDInit /ProcSet findresource begin",
		"12 dict begin",
		"begincmap",
		"/CIDSystemInfo",
		f"<< /Registry ({cmap_name})",
		f"   /Ordering ({cmap_name})",
		"   /Supplement 0",
		">> def",
		f"/CMapName /{cmap_name} def",
		"/CMapType 2 def",
		"1 begincodespacerange",
		"<00> <FF>",
		"endcodespacerange",
	]
	# bfchar blocks are limited to 100 entries each
	for index in range(0, len(codes), 100):
		chunk = codes[index:index + 100]
		lines.append(f"{len(chunk)} beginbfchar")
		for code in chunk:
			lines.append(f"<{code:02X}> <{code:04X}>")
		lines.append("endbfchar")
	lines.extend([
		"endcmap",
		"CMapName currentdict /CMap defineresource pop",
		"end",
		"end",
	])
	return "\n".join(lines)
