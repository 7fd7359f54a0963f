"""
CLI entry points for Avery label sheet generation.
"""

# Standard Library
import argparse
import json
import pathlib
import time

# local repo modules
import avery_label_maker as alm
import avery_label_maker.assemble
import avery_label_maker.config
import avery_label_maker.font_decoder
import avery_label_maker.layouts


LabelLayout = alm.config.LabelLayout
LabelRequest = alm.config.LabelRequest
RenderResult = alm.config.RenderResult

LAYOUTS = alm.config.LAYOUTS
DEFAULT_FONT_SIZE = alm.config.DEFAULT_FONT_SIZE
DEFAULT_TEXT = alm.config.DEFAULT_TEXT
SMOKE_TEST_TEXT = alm.config.SMOKE_TEST_TEXT
MISSING_WIDTH_POLICIES = alm.config.MISSING_WIDTH_POLICIES
MISSING_WIDTH_DEFAULT = alm.config.MISSING_WIDTH_DEFAULT


#============================================
def decode_text_argument(value: str) -> str:
	"""
	Turn literal backslash-n sequences from the shell into newlines.

	Args:
		value: Raw --text value.

	Returns:
		Label text.
	"""
	return value.replace("\\n", "\n")


#============================================
def build_output_name(layout: LabelLayout, show_borders: bool, include_checkbox: bool) -> str:
	"""
	Build the default output filename for a layout and option set.

	Args:
		layout: Resolved layout.
		show_borders: Borders flag.
		include_checkbox: Checkbox flag.

	Returns:
		Filename such as "labels_Avery_L7160_checkbox.pdf".
	"""
	name = "labels_" + layout.name.replace(" ", "_")
	if show_borders:
		name += "_bordered"
	if include_checkbox:
		name += "_checkbox"
	return name + ".pdf"


#============================================
def build_smoke_test_name(layout: LabelLayout) -> str:
	"""
	Build the smoke test filename for a layout.

	Args:
		layout: Catalog layout.

	Returns:
		Filename such as "test_avery_l7160_full_features.pdf".
	"""
	return "test_" + layout.name.lower().replace(" ", "_") + "_full_features.pdf"


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Print custom-font text onto Avery A4 label sheets.")

	input_group = parser.add_argument_group("Input")
	input_group.add_argument("-f", "--font", dest="font_path", default=None, help="TrueType or OpenType font file.")
	input_group.add_argument("-t", "--text", dest="text", default=DEFAULT_TEXT, help="Label text, \\n starts a new paragraph.")
	input_group.add_argument("-T", "--text-file", dest="text_file", default=None, help="Read label text from a file.")

	layout_group = parser.add_argument_group("Layout")
	layout_group.add_argument("-l", "--layout", dest="layout_name", default=LAYOUTS[0].name, help="Label sheet layout name.")
	layout_group.add_argument("-L", "--layout-file", dest="layout_file", default=None, help="JSON file with extra layouts.")
	layout_group.add_argument("-s", "--font-size", dest="font_size", type=float, default=DEFAULT_FONT_SIZE, help="Font size in points.")
	layout_group.add_argument("-a", "--auto-size", dest="auto_size", action="store_true", help="Shrink the font size to an estimated fit.")
	layout_group.add_argument("--list-layouts", dest="list_layouts", action="store_true", help="Print layouts and label positions, then exit.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", default=None, help="Output PDF path.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	output_group.add_argument("--smoke-test", dest="smoke_test_dir", default=None, help="Write a full-feature PDF for every layout into this directory.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument("-b", "--borders", dest="show_borders", action="store_true", help="Draw label outlines.")
	behavior_group.add_argument("-B", "--no-borders", dest="show_borders", action="store_false", help="Disable label outlines.")
	behavior_group.add_argument("-k", "--checkbox", dest="include_checkbox", action="store_true", help="Draw a tick box on each label.")
	behavior_group.add_argument("-K", "--no-checkbox", dest="include_checkbox", action="store_false", help="Disable the tick box.")
	behavior_group.add_argument(
		"--missing-width",
		dest="missing_width_policy",
		choices=MISSING_WIDTH_POLICIES,
		default=MISSING_WIDTH_DEFAULT,
		help="Width used for glyphs without a recorded advance width.",
	)
	behavior_group.add_argument("-v", "--verbose", dest="verbose", action="store_true", help="Print font diagnostics.")

	parser.set_defaults(
		show_borders=False,
		include_checkbox=True,
		auto_size=False,
		list_layouts=False,
		verbose=False,
	)

	args = parser.parse_args(argv)
	args.catalog = LAYOUTS
	if args.layout_file is not None:
		try:
			extra = alm.layouts.load_layout_catalog(pathlib.Path(args.layout_file))
			args.catalog = alm.layouts.extend_catalog(LAYOUTS, extra)
		except (OSError, ValueError) as error:
			parser.error(f"bad layout file: {error}")
	if args.list_layouts:
		return args
	if args.font_path is None:
		parser.error("--font is required")
	if not pathlib.Path(args.font_path).is_file():
		parser.error(f"font file not found: {args.font_path}")
	if args.font_size <= 0:
		parser.error("--font-size must be positive")
	if args.text_file is not None and not pathlib.Path(args.text_file).is_file():
		parser.error(f"text file not found: {args.text_file}")
	return args


#============================================
def load_catalog(args: argparse.Namespace) -> tuple[LabelLayout, ...]:
	"""
	Return the catalog parse_args built from the built-in layouts and --layout-file.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Layout catalog, built-in layouts first.
	"""
	return args.catalog


#============================================
def read_text(args: argparse.Namespace) -> str:
	"""
	Read the label text from --text-file or --text.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Label text.
	"""
	if args.text_file is not None:
		text = pathlib.Path(args.text_file).read_text(encoding="utf-8")
		return text.rstrip("\n")
	return decode_text_argument(args.text)


#============================================
def print_layouts(catalog: tuple[LabelLayout, ...]) -> None:
	"""
	Print every layout with its label positions.

	Args:
		catalog: Layouts to print.
	"""
	for layout in catalog:
		print(f"=== {layout.name} ===")
		print(alm.layouts.format_layout_info(layout))
		print(alm.layouts.format_positions(layout))
		print()


#============================================
def print_font_report(font_bytes: bytes, result: RenderResult) -> None:
	"""
	Print font integrity and extraction diagnostics.

	Args:
		font_bytes: Raw font bytes.
		result: Render result carrying the extracted metrics and widths.
	"""
	report = alm.font_decoder.describe_font_bytes(font_bytes)
	print(f"Font size: {report['size']} bytes")
	print(f"First 4 bytes: {report['first_bytes']}")
	print(f"Last 4 bytes: {report['last_bytes']}")
	print(f"Valid font magic number: {report['valid_magic']}")
	print(f"First {alm.config.CHECKSUM_BYTES} bytes checksum: {report['checksum']}")
	if result.metrics is not None:
		metrics = result.metrics
		print(f"PostScript name: {metrics.postscript_name}")
		print("Font bbox: [{:.1f} {:.1f} {:.1f} {:.1f}]".format(*metrics.bbox))
		print(f"Ascent: {metrics.ascent:.1f}, Descent: {metrics.descent:.1f}")
		if metrics.defaulted:
			print(f"Defaulted metrics: {', '.join(metrics.defaulted)}")
	if result.widths is not None:
		widths = result.widths
		print(f"Glyph source: {widths.glyph_source}")
		print(f"Character mappings: {len(widths.code_to_glyph)}")
		print(f"Scale factor: {widths.scale_factor:.4f}")
		for note in widths.notes:
			print(f"Note: {note}")


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	request: LabelRequest,
	result: RenderResult,
	output_path: pathlib.Path,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		request: Generation inputs.
		result: Successful render result.
		output_path: PDF output path.
	"""
	report = alm.font_decoder.describe_font_bytes(request.font_bytes)
	layout = result.layout
	metrics = result.metrics
	widths = result.widths
	data = {
		"output": str(output_path),
		"label_count": result.label_count,
		"font_size": request.font_size,
		"show_borders": request.show_borders,
		"include_checkbox": request.include_checkbox,
		"missing_width_policy": request.missing_width_policy,
		"layout": {
			"name": layout.name,
			"label_width_mm": layout.label_width_mm,
			"label_height_mm": layout.label_height_mm,
			"cols": layout.cols,
			"rows": layout.rows,
			"margin_left_mm": layout.margin_left_mm,
			"margin_top_mm": layout.margin_top_mm,
			"spacing_x_mm": layout.spacing_x_mm,
			"spacing_y_mm": layout.spacing_y_mm,
		},
		"font": {
			"bytes": report["size"],
			"sha256": report["sha256"],
			"valid_magic": report["valid_magic"],
			"postscript_name": metrics.postscript_name,
			"bbox": list(metrics.bbox),
			"ascent": metrics.ascent,
			"descent": metrics.descent,
			"defaulted": list(metrics.defaulted),
			"glyph_source": widths.glyph_source,
			"mapped_codes": len(widths.code_to_glyph),
			"missing_codes": list(widths.missing_codes),
		},
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)


#============================================
def run_generate(args: argparse.Namespace) -> int:
	"""
	Generate one label sheet PDF.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Process exit code.
	"""
	catalog = load_catalog(args)
	layout = alm.layouts.resolve_layout(args.layout_name, catalog)
	if layout.name != args.layout_name:
		print(f"Unknown layout '{args.layout_name}', using {layout.name}")

	font_path = pathlib.Path(args.font_path)
	font_bytes = font_path.read_bytes()
	text = read_text(args)

	font_size = args.font_size
	if args.auto_size:
		font_size = alm.layouts.optimal_font_size(layout, text, font_size)

	print("Avery label sheet")
	print(f"Font: {font_path} ({len(font_bytes)} bytes)")
	print(f"Layout: {layout.name} ({layout.label_count} labels)")
	print(f"Font size: {font_size:.1f} pt")
	print(f"Borders: {args.show_borders}")
	print(f"Checkbox: {args.include_checkbox}")

	request = LabelRequest(
		font_bytes=font_bytes,
		text=text,
		layout_name=layout.name,
		font_size=font_size,
		show_borders=args.show_borders,
		include_checkbox=args.include_checkbox,
		missing_width_policy=args.missing_width_policy,
	)
	start_time = time.perf_counter()
	result = alm.assemble.render_label_pdf(request, catalog)
	if args.verbose:
		print_font_report(font_bytes, result)
	if not result.ok:
		print(f"Error: {result.error}")
		return 1

	output_path = args.output_path
	if output_path is None:
		output_path = build_output_name(layout, args.show_borders, args.include_checkbox)
	output_path = pathlib.Path(output_path)
	output_path.write_bytes(result.pdf_bytes)

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_path}.json"
	write_manifest(pathlib.Path(manifest_path), request, result, output_path)

	total_time = time.perf_counter() - start_time
	print(f"Labels written: {result.label_count}")
	print(f"Output PDF: {output_path}")
	print(f"Manifest written: {manifest_path}")
	print(f"Timing: total={total_time:.2f}s")
	return 0


#============================================
def run_smoke_test(args: argparse.Namespace) -> int:
	"""
	Write one bordered, checkbox, wrapped-text PDF per catalog layout.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Process exit code, 1 if any layout failed.
	"""
	catalog = load_catalog(args)
	output_dir = pathlib.Path(args.smoke_test_dir)
	output_dir.mkdir(parents=True, exist_ok=True)
	font_bytes = pathlib.Path(args.font_path).read_bytes()
	print(f"Font loaded: {len(font_bytes)} bytes")

	failures = 0
	for layout in catalog:
		print(f"Generating test PDF for {layout.name}...")
		request = LabelRequest(
			font_bytes=font_bytes,
			text=SMOKE_TEST_TEXT,
			layout_name=layout.name,
			font_size=args.font_size,
			show_borders=True,
			include_checkbox=True,
			missing_width_policy=args.missing_width_policy,
		)
		result = alm.assemble.render_label_pdf(request, catalog)
		if not result.ok:
			print(f"ERROR generating {layout.name}: {result.error}")
			failures += 1
			continue
		output_path = output_dir / build_smoke_test_name(layout)
		output_path.write_bytes(result.pdf_bytes)
		print(f"Saved: {output_path}")
	if failures:
		return 1
	return 0


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.

	Args:
		argv: Argument list, defaults to sys.argv.
	"""
	args = parse_args(argv)
	if args.list_layouts:
		print_layouts(load_catalog(args))
		return
	if args.smoke_test_dir is not None:
		exit_code = run_smoke_test(args)
	else:
		exit_code = run_generate(args)
	if exit_code:
		raise SystemExit(exit_code)
