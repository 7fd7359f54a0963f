"""
Label sheet geometry: the layout catalog and per-cell page positions.
"""

# Standard Library
import json
import pathlib

# PIP3 modules
import reportlab.lib.pagesizes
import reportlab.lib.units

# local repo modules
import avery_label_maker as alm
import avery_label_maker.config


LabelLayout = alm.config.LabelLayout

LAYOUTS = alm.config.LAYOUTS
DEFAULT_LAYOUT = alm.config.DEFAULT_LAYOUT
AVERAGE_CHAR_WIDTH_FACTOR = alm.config.AVERAGE_CHAR_WIDTH_FACTOR
MAX_HEIGHT_FACTOR = alm.config.MAX_HEIGHT_FACTOR

PAGE_WIDTH, PAGE_HEIGHT = reportlab.lib.pagesizes.A4

LAYOUT_FIELDS = (
	"name",
	"label_width_mm",
	"label_height_mm",
	"cols",
	"rows",
	"margin_left_mm",
	"margin_top_mm",
	"spacing_x_mm",
	"spacing_y_mm",
)


#============================================
def mm_to_points(value: float) -> float:
	"""
	Convert millimeters to points.

	Args:
		value: Millimeters value.

	Returns:
		Points value.
	"""
	return value * reportlab.lib.units.mm


#============================================
def position_of(layout: LabelLayout, row: int, col: int) -> tuple[float, float]:
	"""
	Compute the bottom-left corner of a label cell.

	Args:
		layout: Sheet layout.
		row: Row index, 0 is the top row.
		col: Column index, 0 is the left column.

	Returns:
		Tuple of (x, y) in PDF points with a bottom-left page origin.
	"""
	x_mm = layout.margin_left_mm + col * (layout.label_width_mm + layout.spacing_x_mm)
	y_from_top_mm = layout.margin_top_mm + row * (layout.label_height_mm + layout.spacing_y_mm)
	x = mm_to_points(x_mm)
	y = PAGE_HEIGHT - mm_to_points(y_from_top_mm) - mm_to_points(layout.label_height_mm)
	return (x, y)


#============================================
def all_positions(layout: LabelLayout) -> list[tuple[float, float]]:
	"""
	List every cell position in row-major order, top row first.

	Args:
		layout: Sheet layout.

	Returns:
		List of rows * cols (x, y) tuples.
	"""
	positions = []
	for row in range(layout.rows):
		for col in range(layout.cols):
			positions.append(position_of(layout, row, col))
	return positions


#============================================
def layout_by_name(name: str, catalog: tuple[LabelLayout, ...] = LAYOUTS) -> LabelLayout | None:
	"""
	Find a layout by exact name.

	Args:
		name: Layout name such as "Avery L7160".
		catalog: Layouts to search.

	Returns:
		Matching layout or None.
	"""
	for layout in catalog:
		if layout.name == name:
			return layout
	return None


#============================================
def resolve_layout(name: str, catalog: tuple[LabelLayout, ...] = LAYOUTS) -> LabelLayout:
	"""
	Find a layout by name, substituting the first catalog entry on a miss.

	Args:
		name: Layout name.
		catalog: Layouts to search.

	Returns:
		Matching or default layout.
	"""
	layout = layout_by_name(name, catalog)
	if layout is None:
		if catalog:
			return catalog[0]
		return DEFAULT_LAYOUT
	return layout


#============================================
def optimal_font_size(layout: LabelLayout, text: str, max_font_size: float) -> float:
	"""
	Estimate the largest font size that fits the text on one label.

	This is a rough heuristic assuming an average glyph width of 0.6 em;
	real layout uses the measured per-character widths.

	Args:
		layout: Sheet layout.
		text: Label text.
		max_font_size: Requested font size upper bound.

	Returns:
		Font size in points.
	"""
	label_width = mm_to_points(layout.label_width_mm)
	label_height = mm_to_points(layout.label_height_mm)
	if text:
		max_size_for_width = label_width / (len(text) * AVERAGE_CHAR_WIDTH_FACTOR)
	else:
		max_size_for_width = max_font_size
	max_size_for_height = label_height * MAX_HEIGHT_FACTOR
	return min(max_font_size, max_size_for_width, max_size_for_height)


#============================================
def load_layout_catalog(path: pathlib.Path) -> tuple[LabelLayout, ...]:
	"""
	Load extra sheet layouts from a JSON list.

	Each entry needs the LabelLayout field names; "description" is optional.
	Only the presence of fields and a positive grid are checked, the
	geometry itself is trusted.

	Args:
		path: JSON file path.

	Returns:
		Tuple of layouts in file order.
	"""
	with path.open("r", encoding="utf-8") as handle:
		data = json.load(handle)
	if not isinstance(data, list):
		raise ValueError(f"{path}: expected a JSON list of layouts")

	layouts = []
	for index, entry in enumerate(data):
		if not isinstance(entry, dict):
			raise ValueError(f"{path}: entry {index} is not an object")
		missing = [field for field in LAYOUT_FIELDS if field not in entry]
		if missing:
			raise ValueError(f"{path}: entry {index} missing {', '.join(missing)}")
		layout = LabelLayout(
			name=str(entry["name"]),
			label_width_mm=float(entry["label_width_mm"]),
			label_height_mm=float(entry["label_height_mm"]),
			cols=int(entry["cols"]),
			rows=int(entry["rows"]),
			margin_left_mm=float(entry["margin_left_mm"]),
			margin_top_mm=float(entry["margin_top_mm"]),
			spacing_x_mm=float(entry["spacing_x_mm"]),
			spacing_y_mm=float(entry["spacing_y_mm"]),
			description=str(entry.get("description", "")),
		)
		if layout.cols <= 0 or layout.rows <= 0:
			raise ValueError(f"{path}: entry {index} needs positive cols and rows")
		layouts.append(layout)
	return tuple(layouts)


#============================================
def extend_catalog(
	catalog: tuple[LabelLayout, ...],
	extra: tuple[LabelLayout, ...],
) -> tuple[LabelLayout, ...]:
	"""
	Append extra layouts to a catalog, refusing repeated names.

	Args:
		catalog: Existing layouts, kept first.
		extra: Layouts to add.

	Returns:
		Combined catalog.
	"""
	seen = {layout.name for layout in catalog}
	for layout in extra:
		if layout.name in seen:
			raise ValueError(f"duplicate layout name: {layout.name}")
		seen.add(layout.name)
	return catalog + extra


#============================================
def format_layout_info(layout: LabelLayout) -> str:
	"""
	Describe a layout in a few human readable lines.

	Args:
		layout: Sheet layout.

	Returns:
		Multi-line summary.
	"""
	lines = [
		f"Layout: {layout.name}",
		f"Label size: {layout.label_width_mm:.1f} x {layout.label_height_mm:.1f} mm",
		f"Grid: {layout.cols} cols x {layout.rows} rows = {layout.label_count} labels",
		f"Margins: left={layout.margin_left_mm:.1f} mm, top={layout.margin_top_mm:.1f} mm",
		f"Spacing: x={layout.spacing_x_mm:.1f} mm, y={layout.spacing_y_mm:.1f} mm",
	]
	return "\n".join(lines)


#============================================
def format_positions(layout: LabelLayout) -> str:
	"""
	List every label position of a layout.

	Args:
		layout: Sheet layout.

	Returns:
		Multi-line listing, labels numbered from 1.
	"""
	lines = ["Label positions:"]
	for index, (x, y) in enumerate(all_positions(layout), start=1):
		lines.append(f"  Label {index}: ({x:.1f}, {y:.1f}) points")
	return "\n".join(lines)
