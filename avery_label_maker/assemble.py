"""
Assemble the label sheet PDF: embedded font, ToUnicode map and one page
of repeated label cells.
"""

# Standard Library
import io

# PIP3 modules
import pypdf
import pypdf.generic

# local repo modules
import avery_label_maker as alm
import avery_label_maker.config
import avery_label_maker.font_decoder
import avery_label_maker.font_metrics
import avery_label_maker.layouts
import avery_label_maker.tounicode
import avery_label_maker.wrap


ArrayObject = pypdf.generic.ArrayObject
DecodedStreamObject = pypdf.generic.DecodedStreamObject
DictionaryObject = pypdf.generic.DictionaryObject
FloatObject = pypdf.generic.FloatObject
NameObject = pypdf.generic.NameObject
NumberObject = pypdf.generic.NumberObject

LabelLayout = alm.config.LabelLayout
LabelRequest = alm.config.LabelRequest
RenderResult = alm.config.RenderResult
FontMetrics = alm.config.FontMetrics
FontWidths = alm.config.FontWidths

FIRST_CHAR = alm.config.FIRST_CHAR
LAST_CHAR = alm.config.LAST_CHAR
SUBSET_PREFIX = alm.config.SUBSET_PREFIX
FALLBACK_FONT_NAME = alm.config.FALLBACK_FONT_NAME
FONT_RESOURCE_NAME = alm.config.FONT_RESOURCE_NAME
FONT_FLAGS = alm.config.FONT_FLAGS
CAP_HEIGHT_FACTOR = alm.config.CAP_HEIGHT_FACTOR
DEFAULT_STEM_V = alm.config.DEFAULT_STEM_V
DEFAULT_MISSING_WIDTH = alm.config.DEFAULT_MISSING_WIDTH
TEXT_MARGIN = alm.config.TEXT_MARGIN
CHECKBOX_MARGIN = alm.config.CHECKBOX_MARGIN
LINE_HEIGHT_FACTOR = alm.config.LINE_HEIGHT_FACTOR

PAGE_WIDTH = alm.layouts.PAGE_WIDTH
PAGE_HEIGHT = alm.layouts.PAGE_HEIGHT


class AssemblyError(Exception):
	"""
	Raised when the label document cannot be built or serialized.
	"""


#============================================
def sanitize_font_name(value: str) -> str:
	"""
	Reduce a font name to characters that are safe in PDF names and strings.

	Args:
		value: PostScript font name.

	Returns:
		Sanitized name, or the fallback name when nothing is left.
	"""
	result: list[str] = []
	for char in value:
		if char.isascii() and (char.isalnum() or char in "-_."):
			result.append(char)
	sanitized = "".join(result)
	if not sanitized:
		return FALLBACK_FONT_NAME
	return sanitized


#============================================
def escape_pdf_text(text: str) -> str:
	"""
	Escape text for a PDF literal string shown with a WinAnsi font.

	Args:
		text: Line of label text.

	Returns:
		Escaped string body without the surrounding parentheses.
	"""
	result: list[str] = []
	for char in text:
		if char in "\\()":
			result.append("\\" + char)
		elif FIRST_CHAR <= ord(char) <= LAST_CHAR:
			result.append(char)
		else:
			try:
				encoded = char.encode("cp1252")
			except UnicodeEncodeError:
				result.append("?")
				continue
			result.append(f"\\{encoded[0]:03o}")
	return "".join(result)


#============================================
def make_stream(data: bytes) -> pypdf.generic.DecodedStreamObject:
	"""
	Wrap raw bytes in an uncompressed stream object.

	Args:
		data: Stream payload.

	Returns:
		Stream object; /Length is written by pypdf on output.
	"""
	stream = DecodedStreamObject()
	stream.set_data(data)
	return stream


#============================================
def add_font_objects(
	writer: pypdf.PdfWriter,
	font_bytes: bytes,
	metrics: FontMetrics,
	widths: FontWidths,
) -> pypdf.generic.IndirectObject:
	"""
	Embed the font program with its descriptor, ToUnicode map and font dict.

	Objects are added children first, so every reference points at a
	finished object.

	Args:
		writer: Document under construction.
		font_bytes: Raw font bytes, embedded verbatim.
		metrics: Extracted font metrics.
		widths: Extracted character widths.

	Returns:
		Indirect reference to the font dictionary.
	"""
	subset_name = SUBSET_PREFIX + sanitize_font_name(metrics.postscript_name)

	font_file = make_stream(bytes(font_bytes))
	font_file[NameObject("/Length1")] = NumberObject(len(font_bytes))
	# CFF outlines in a simple font are declared as Type1
	if bytes(font_bytes[:4]) == b"OTTO":
		font_file_key = "/FontFile3"
		font_subtype = "/Type1"
		font_file[NameObject("/Subtype")] = NameObject("/OpenType")
	else:
		font_file_key = "/FontFile2"
		font_subtype = "/TrueType"
	font_file_ref = writer._add_object(font_file)

	cmap_text = alm.tounicode.build_tounicode_cmap(list(widths.code_to_glyph), subset_name)
	cmap_ref = writer._add_object(make_stream(cmap_text.encode("ascii")))

	left, bottom, right, top = metrics.bbox
	descriptor = DictionaryObject()
	descriptor[NameObject("/Type")] = NameObject("/FontDescriptor")
	descriptor[NameObject("/FontName")] = NameObject("/" + subset_name)
	descriptor[NameObject(font_file_key)] = font_file_ref
	descriptor[NameObject("/Flags")] = NumberObject(FONT_FLAGS)
	descriptor[NameObject("/FontBBox")] = ArrayObject([
		FloatObject(left),
		FloatObject(bottom),
		FloatObject(right),
		FloatObject(top),
	])
	descriptor[NameObject("/ItalicAngle")] = FloatObject(0.0)
	descriptor[NameObject("/Ascent")] = FloatObject(metrics.ascent)
	descriptor[NameObject("/Descent")] = FloatObject(metrics.descent)
	descriptor[NameObject("/CapHeight")] = FloatObject(metrics.ascent * CAP_HEIGHT_FACTOR)
	descriptor[NameObject("/StemV")] = FloatObject(DEFAULT_STEM_V)
	descriptor[NameObject("/MissingWidth")] = FloatObject(DEFAULT_MISSING_WIDTH)
	descriptor_ref = writer._add_object(descriptor)

	width_slice = widths.char_widths[FIRST_CHAR:LAST_CHAR + 1]
	font = DictionaryObject()
	font[NameObject("/Type")] = NameObject("/Font")
	font[NameObject("/Subtype")] = NameObject(font_subtype)
	font[NameObject("/BaseFont")] = NameObject("/" + subset_name)
	font[NameObject("/FontDescriptor")] = descriptor_ref
	font[NameObject("/FirstChar")] = NumberObject(FIRST_CHAR)
	font[NameObject("/LastChar")] = NumberObject(LAST_CHAR)
	font[NameObject("/Widths")] = ArrayObject([FloatObject(width) for width in width_slice])
	font[NameObject("/ToUnicode")] = cmap_ref
	font[NameObject("/Encoding")] = NameObject("/WinAnsiEncoding")
	return writer._add_object(font)


#============================================
def compute_wrap_widths(
	layout: LabelLayout,
	font_size: float,
) -> tuple[float, float, float]:
	"""
	Compute the usable line widths inside one label.

	Args:
		layout: Sheet layout.
		font_size: Font size in points; the checkbox has the same size.

	Returns:
		Tuple of (max_width, max_width_near_top, height_threshold).
	"""
	label_width = alm.layouts.mm_to_points(layout.label_width_mm)
	checkbox_size = font_size
	max_width = label_width - 2.0 * TEXT_MARGIN
	# top lines always leave room for a checkbox, drawn or not
	max_width_near_top = max_width - checkbox_size - (CHECKBOX_MARGIN - TEXT_MARGIN)
	return (max_width, max_width_near_top, checkbox_size)


#============================================
def build_label_fragment(
	x: float,
	y: float,
	label_width: float,
	label_height: float,
	text_lines: list[str],
	font_size: float,
	show_borders: bool,
	include_checkbox: bool,
) -> str:
	"""
	Build the content stream operators for one label cell.

	Args:
		x: Cell left edge in points.
		y: Cell bottom edge in points.
		label_width: Cell width in points.
		label_height: Cell height in points.
		text_lines: Wrapped lines; empty strings are paragraph gaps.
		font_size: Font size in points.
		show_borders: Stroke the cell outline.
		include_checkbox: Stroke a font-size square near the top-right corner.

	Returns:
		Operators wrapped in a q/Q group.
	"""
	parts = ["q"]
	if show_borders:
		parts.append(f"{x:.2f} {y:.2f} {label_width:.2f} {label_height:.2f} re S")
	if include_checkbox:
		checkbox_size = font_size
		checkbox_x = x + label_width - checkbox_size - CHECKBOX_MARGIN
		checkbox_y = y + label_height - checkbox_size - CHECKBOX_MARGIN
		parts.append(
			f"{checkbox_x:.2f} {checkbox_y:.2f} {checkbox_size:.2f} {checkbox_size:.2f} re S"
		)

	line_height = font_size * LINE_HEIGHT_FACTOR
	offset = 0.0
	for line in text_lines:
		if not line:
			offset += line_height / 2.0
			continue
		text_x = x + TEXT_MARGIN
		text_y = y + label_height - TEXT_MARGIN - offset - font_size
		parts.append(
			f"BT {FONT_RESOURCE_NAME} {font_size:.1f} Tf {text_x:.2f} {text_y:.2f} Td "
			f"({escape_pdf_text(line)}) Tj ET"
		)
		offset += line_height
	parts.append("Q")
	return "\n".join(parts)


#============================================
def build_label_content(
	layout: LabelLayout,
	text_lines: list[str],
	font_size: float,
	show_borders: bool,
	include_checkbox: bool,
) -> str:
	"""
	Build the page content stream with one group per label cell.

	Args:
		layout: Sheet layout.
		text_lines: Wrapped lines shared by every label.
		font_size: Font size in points.
		show_borders: Stroke cell outlines.
		include_checkbox: Draw a checkbox in every cell.

	Returns:
		Content stream text.
	"""
	label_width = alm.layouts.mm_to_points(layout.label_width_mm)
	label_height = alm.layouts.mm_to_points(layout.label_height_mm)
	fragments = []
	for x, y in alm.layouts.all_positions(layout):
		fragments.append(build_label_fragment(
			x,
			y,
			label_width,
			label_height,
			text_lines,
			font_size,
			show_borders,
			include_checkbox,
		))
	return "\n".join(fragments)


#============================================
def build_label_document(
	request: LabelRequest,
	catalog: tuple[LabelLayout, ...] = alm.config.LAYOUTS,
) -> tuple[pypdf.PdfWriter, LabelLayout, FontMetrics, FontWidths]:
	"""
	Build the complete single page label document.

	Args:
		request: Generation inputs.
		catalog: Layouts to resolve the layout name against.

	Returns:
		Tuple of (writer, layout, metrics, widths).
	"""
	try:
		if request.font_size <= 0:
			raise ValueError(f"font size must be positive, got {request.font_size}")
		layout = alm.layouts.resolve_layout(request.layout_name, catalog)
		metrics = alm.font_metrics.extract_font_metrics(request.font_bytes)
		widths = alm.font_metrics.extract_cmap_and_widths(
			request.font_bytes,
			missing_width_policy=request.missing_width_policy,
			fallback_glyph_offset=request.fallback_glyph_offset,
		)

		writer = pypdf.PdfWriter()
		font_ref = add_font_objects(writer, request.font_bytes, metrics, widths)

		max_width, max_width_near_top, height_threshold = compute_wrap_widths(
			layout,
			request.font_size,
		)
		text_lines = alm.wrap.wrap_text(
			request.text,
			max_width,
			request.font_size,
			widths.char_widths,
			max_width_near_top=max_width_near_top,
			height_threshold=height_threshold,
			line_height=request.font_size * LINE_HEIGHT_FACTOR,
		)
		content = build_label_content(
			layout,
			text_lines,
			request.font_size,
			request.show_borders,
			request.include_checkbox,
		)

		page = writer.add_blank_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
		page[NameObject("/Contents")] = writer._add_object(make_stream(content.encode("ascii")))
		font_resources = DictionaryObject({NameObject(FONT_RESOURCE_NAME): font_ref})
		page[NameObject("/Resources")] = DictionaryObject({NameObject("/Font"): font_resources})
	except Exception as error:
		raise AssemblyError(
			f"Multi-label PDF generation failed: {alm.font_decoder.describe_error(error)}"
		) from error
	return (writer, layout, metrics, widths)


#============================================
def serialize_document(writer: pypdf.PdfWriter) -> bytes:
	"""
	Serialize a finished document.

	Args:
		writer: Finished document.

	Returns:
		PDF bytes.
	"""
	buffer = io.BytesIO()
	try:
		writer.write(buffer)
	except Exception as error:
		raise AssemblyError(
			f"PDF serialization failed: {alm.font_decoder.describe_error(error)}"
		) from error
	return buffer.getvalue()


#============================================
def render_label_pdf(
	request: LabelRequest,
	catalog: tuple[LabelLayout, ...] = alm.config.LAYOUTS,
) -> RenderResult:
	"""
	Generate the label sheet PDF for one request.

	Either the whole document comes back or a single error message; no
	partial document is ever returned.

	Args:
		request: Generation inputs.
		catalog: Layouts to resolve the layout name against.

	Returns:
		RenderResult.
	"""
	try:
		writer, layout, metrics, widths = build_label_document(request, catalog)
		pdf_bytes = serialize_document(writer)
	except AssemblyError as error:
		return RenderResult(pdf_bytes=None, error=str(error))
	return RenderResult(
		pdf_bytes=pdf_bytes,
		error=None,
		layout=layout,
		label_count=layout.label_count,
		metrics=metrics,
		widths=widths,
	)
