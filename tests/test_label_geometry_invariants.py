import dataclasses
import json
import pathlib

import pytest
import reportlab.lib.pagesizes

import avery_label_maker as alm
import avery_label_maker.config
import avery_label_maker.layouts


LAYOUTS = alm.config.LAYOUTS
mm_to_points = alm.layouts.mm_to_points


#============================================
@pytest.mark.parametrize("layout", LAYOUTS, ids=lambda layout: layout.name)
def test_positions_count_and_on_page(layout: alm.config.LabelLayout) -> None:
	"""
	Every layout has rows * cols cells, all inside the A4 page.
	"""
	page_width, page_height = reportlab.lib.pagesizes.A4
	positions = alm.layouts.all_positions(layout)
	assert len(positions) == layout.rows * layout.cols
	label_width = mm_to_points(layout.label_width_mm)
	label_height = mm_to_points(layout.label_height_mm)
	for x, y in positions:
		assert 0.0 <= x < x + label_width <= page_width
		assert 0.0 <= y < y + label_height <= page_height


#============================================
@pytest.mark.parametrize("layout", LAYOUTS, ids=lambda layout: layout.name)
def test_positions_row_major_top_first(layout: alm.config.LabelLayout) -> None:
	"""
	Positions run left to right along the top row first.
	"""
	positions = alm.layouts.all_positions(layout)
	assert positions[0] == alm.layouts.position_of(layout, 0, 0)
	first_row = positions[:layout.cols]
	assert [y for _x, y in first_row] == [positions[0][1]] * layout.cols
	assert [x for x, _y in first_row] == sorted(x for x, _y in first_row)
	second_row_y = positions[layout.cols][1]
	assert second_row_y < positions[0][1]
	assert positions[-1] == alm.layouts.position_of(layout, layout.rows - 1, layout.cols - 1)


#============================================
def test_l7160_first_cell() -> None:
	"""
	The top-left L7160 cell sits at the sheet margins.
	"""
	layout = alm.layouts.layout_by_name("Avery L7160")
	page_height = reportlab.lib.pagesizes.A4[1]
	x, y = alm.layouts.position_of(layout, 0, 0)
	assert x == pytest.approx(7.0 * 2.834645669)
	assert y == pytest.approx(page_height - (15.0 + 38.1) * 2.834645669)
	x2, _y2 = alm.layouts.position_of(layout, 0, 1)
	assert x2 - x == pytest.approx((63.5 + 2.5) * 2.834645669)


#============================================
def test_cells_non_overlapping() -> None:
	"""
	Adjacent cells do not overlap.
	"""
	epsilon = 0.001
	for layout in LAYOUTS:
		label_width = mm_to_points(layout.label_width_mm)
		label_height = mm_to_points(layout.label_height_mm)
		for col in range(layout.cols - 1):
			left_x, _y = alm.layouts.position_of(layout, 0, col)
			right_x, _y = alm.layouts.position_of(layout, 0, col + 1)
			assert right_x >= left_x + label_width - epsilon
		for row in range(layout.rows - 1):
			_x, upper_y = alm.layouts.position_of(layout, row, 0)
			_x, lower_y = alm.layouts.position_of(layout, row + 1, 0)
			assert lower_y + label_height <= upper_y + epsilon


#============================================
def test_catalog_entries() -> None:
	"""
	The catalog holds the two physical sheets and the L7160 naming variant.
	"""
	l7160 = alm.layouts.layout_by_name("Avery L7160")
	l7162 = alm.layouts.layout_by_name("Avery L7162")
	variant = alm.layouts.layout_by_name("Avery L7160-93")
	assert (l7160.cols, l7160.rows, l7160.label_count) == (3, 7, 21)
	assert (l7162.cols, l7162.rows, l7162.label_count) == (2, 8, 16)
	assert (l7162.label_width_mm, l7162.label_height_mm) == (99.1, 33.9)
	assert alm.layouts.all_positions(variant) == alm.layouts.all_positions(l7160)


#============================================
def test_layout_lookup_miss() -> None:
	"""
	Unknown names are absent from the catalog and resolve to the default.
	"""
	assert alm.layouts.layout_by_name("Bogus") is None
	assert alm.layouts.layout_by_name("avery l7160") is None
	assert alm.layouts.resolve_layout("Bogus") == LAYOUTS[0]
	assert alm.layouts.resolve_layout("Avery L7162").name == "Avery L7162"


#============================================
def test_optimal_font_size() -> None:
	"""
	The estimate is capped by the request, text width and label height.
	"""
	layout = alm.layouts.layout_by_name("Avery L7160")
	# 63.5 mm = 180 pt wide, 38.1 mm = 108 pt tall
	assert alm.layouts.optimal_font_size(layout, "Date", 12.0) == pytest.approx(12.0)
	assert alm.layouts.optimal_font_size(layout, "Date", 100.0) == pytest.approx(75.0)
	assert alm.layouts.optimal_font_size(layout, "", 100.0) == pytest.approx(86.4)
	assert alm.layouts.optimal_font_size(layout, "x" * 30, 72.0) == pytest.approx(10.0)


#============================================
def test_load_layout_catalog(tmp_path: pathlib.Path) -> None:
	"""
	Layouts load from JSON and incomplete entries are rejected.
	"""
	entry = {
		"name": "Avery L7163",
		"label_width_mm": 99.1,
		"label_height_mm": 38.1,
		"cols": 2,
		"rows": 7,
		"margin_left_mm": 4.7,
		"margin_top_mm": 15.1,
		"spacing_x_mm": 2.5,
		"spacing_y_mm": 0.0,
	}
	path = tmp_path / "layouts.json"
	path.write_text(json.dumps([entry]), encoding="utf-8")
	layouts = alm.layouts.load_layout_catalog(path)
	assert len(layouts) == 1
	assert layouts[0].name == "Avery L7163"
	assert layouts[0].label_count == 14

	del entry["rows"]
	path.write_text(json.dumps([entry]), encoding="utf-8")
	with pytest.raises(ValueError):
		alm.layouts.load_layout_catalog(path)


#============================================
def test_extend_catalog_rejects_repeated_names() -> None:
	"""
	Extra layouts follow the built-ins and may not reuse their names.
	"""
	extra = dataclasses.replace(alm.config.AVERY_L7162, name="Avery L7162 Custom")
	catalog = alm.layouts.extend_catalog(alm.config.LAYOUTS, (extra,))
	assert catalog[:len(alm.config.LAYOUTS)] == alm.config.LAYOUTS
	assert catalog[-1] is extra
	with pytest.raises(ValueError):
		alm.layouts.extend_catalog(alm.config.LAYOUTS, (alm.config.AVERY_L7160,))
	with pytest.raises(ValueError):
		alm.layouts.extend_catalog(alm.config.LAYOUTS, (extra, extra))


#============================================
def test_format_layout_info() -> None:
	"""
	The layout summary and position listing are human readable.
	"""
	layout = alm.layouts.layout_by_name("Avery L7162")
	info = alm.layouts.format_layout_info(layout)
	assert "Layout: Avery L7162" in info
	assert "Grid: 2 cols x 8 rows = 16 labels" in info
	listing = alm.layouts.format_positions(layout)
	assert listing.count("  Label ") == 16
