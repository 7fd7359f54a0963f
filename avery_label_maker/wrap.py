"""
Greedy word wrapping against measured character widths.
"""

# local repo modules
import avery_label_maker as alm
import avery_label_maker.config


FIRST_CHAR = alm.config.FIRST_CHAR
LAST_CHAR = alm.config.LAST_CHAR
PARAGRAPH_ADVANCE_FACTOR = alm.config.PARAGRAPH_ADVANCE_FACTOR


#============================================
def measure_text_width(text: str, font_size: float, char_widths: tuple[float, ...]) -> float:
	"""
	Measure a string with a 1000 units per em width table.

	Characters outside printable ASCII are measured as a space.

	Args:
		text: Text to measure.
		font_size: Font size in points.
		char_widths: Width table indexed by character code.

	Returns:
		Width in points.
	"""
	space_width = char_widths[FIRST_CHAR]
	total = 0.0
	for char in text:
		code = ord(char)
		if FIRST_CHAR <= code <= LAST_CHAR and code < len(char_widths):
			total += char_widths[code]
		else:
			total += space_width
	return total * font_size / 1000.0


#============================================
def wrap_text(
	text: str,
	max_width: float,
	font_size: float,
	char_widths: tuple[float, ...],
	max_width_near_top: float | None = None,
	height_threshold: float = 0.0,
	line_height: float = 0.0,
) -> list[str]:
	"""
	Wrap text into lines that fit a label.

	Explicit newlines start new paragraphs. Lines whose vertical offset is
	still within `height_threshold` of the top use the narrower
	`max_width_near_top`, which leaves room for a checkbox. A word wider
	than the line is placed on a line of its own without splitting.

	Args:
		text: Label text.
		max_width: Line width in points.
		font_size: Font size in points.
		char_widths: Width table indexed by character code.
		max_width_near_top: Line width near the top, defaults to max_width.
		height_threshold: Offset up to which the narrower width applies.
		line_height: Distance between lines in points.

	Returns:
		List of lines; an empty string marks a paragraph gap.
	"""
	if max_width_near_top is None:
		max_width_near_top = max_width

	all_lines: list[str] = []
	offset = 0.0
	for paragraph_index, paragraph in enumerate(text.split("\n")):
		lines: list[list[str]] = [[]]
		for word in paragraph.split(" "):
			current_line = lines[-1]
			candidate = current_line + [word]
			if offset <= height_threshold:
				line_max_width = max_width_near_top
			else:
				line_max_width = max_width
			candidate_width = measure_text_width(" ".join(candidate), font_size, char_widths)
			if candidate_width <= line_max_width:
				lines[-1] = candidate
			elif not current_line:
				lines[-1] = [word]
			else:
				lines.append([word])
				offset += line_height
		if paragraph_index > 0:
			all_lines.append("")
		all_lines.extend(" ".join(words) for words in lines)
		offset += line_height * PARAGRAPH_ADVANCE_FACTOR
	return all_lines
