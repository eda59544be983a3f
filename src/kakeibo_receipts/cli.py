"""Command-line interface for parsing saved receipt OCR output."""

import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Dict, Any, Optional

import click
import yaml
from tqdm import tqdm

from .classify import CategoryClassifier, DEFAULT_RULES_PATH
from .export import ExcelExporter
from .ocr import OCRError, load_ocr_text
from .parse import JapaneseReceiptParser
from .review import ReviewQueue

logger = logging.getLogger(__name__)

OCR_PATTERNS = ['*.txt', '*.TXT', '*.json', '*.JSON']


def setup_logging(debug: bool = False, stream=None):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(stream or sys.stdout)]
    )


class BatchProcessor:
    """Parses a directory of OCR dumps in parallel."""

    def __init__(self, parser: JapaneseReceiptParser, max_workers: int = 4):
        self.parser = parser
        self.max_workers = max_workers
        self.review_queue = ReviewQueue()
        self.stats = {'total_files': 0, 'processed': 0, 'failed': 0}

    def find_ocr_files(self, input_dir: Path) -> List[Path]:
        """Find all saved OCR results under the input directory."""
        files = set()
        for pattern in OCR_PATTERNS:
            files.update(input_dir.glob(f'**/{pattern}'))
        found = sorted(files)
        logger.info(f"Found {len(found)} OCR files in {input_dir}")
        return found

    def process_single_file(self, path: Path) -> Optional[Dict[str, Any]]:
        """Parse one OCR file; failures are queued for review and return None."""
        try:
            text = load_ocr_text(path)
        except (OCRError, OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            self.stats['failed'] += 1
            self.review_queue.add_item(
                file_path=str(path),
                reason=f"OCR text unavailable: {e}",
                raw_snippet=f"Error: {e}"
            )
            return None

        result = self.parser.parse_receipt(text)
        self.review_queue.add_from_result(str(path), result, text)
        self.stats['processed'] += 1
        return ExcelExporter.create_receipt_row(result, str(path))

    def process_batch(self, input_dir: Path) -> List[Dict[str, Any]]:
        files = self.find_ocr_files(input_dir)
        self.stats['total_files'] = len(files)
        if not files:
            logger.warning("No OCR files found!")
            return []

        rows = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_file = {executor.submit(self.process_single_file, f): f for f in files}
            with tqdm(total=len(files), desc="Parsing receipts") as pbar:
                for future in as_completed(future_to_file):
                    row = future.result()
                    if row is not None:
                        rows.append(row)
                    pbar.update(1)
                    pbar.set_postfix({'processed': self.stats['processed'], 'failed': self.stats['failed']})

        rows.sort(key=lambda r: r['file_name'])
        logger.info(f"Batch complete. Processed: {self.stats['processed']}, "
                    f"Failed: {self.stats['failed']}, Review items: {len(self.review_queue.items)}")
        return rows


def build_parser(rules: Optional[Path], classify: bool) -> JapaneseReceiptParser:
    classifier = CategoryClassifier(rules) if classify else None
    return JapaneseReceiptParser(classifier=classifier)


@click.group()
def cli():
    """Household receipts - extract transaction data from receipt OCR text."""
    pass


@cli.command()
@click.argument('ocr_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--rules', default=str(DEFAULT_RULES_PATH), type=click.Path(path_type=Path),
              help='Path to category rules file')
@click.option('--no-classify', is_flag=True, help='Skip category suggestion')
@click.option('--pretty', is_flag=True, help='Indent JSON output')
@click.option('--debug', is_flag=True, help='Enable debug output')
def parse(ocr_file: Path, rules: Path, no_classify: bool, pretty: bool, debug: bool):
    """
    Parse one saved OCR result and print the extracted fields as JSON.

    Example:
        receipts parse ./ocr/receipt_001.txt --pretty
    """
    # Keep stdout clean for the JSON unless debugging
    if debug:
        setup_logging(debug=True, stream=sys.stderr)
    try:
        text = load_ocr_text(ocr_file)
    except OCRError as e:
        click.echo(f"OCR failed: {e}. Please enter the receipt manually.", err=True)
        sys.exit(1)

    try:
        receipt_parser = build_parser(rules, not no_classify)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load category rules: {e}")
        click.echo(f"Error: cannot load category rules: {e}", err=True)
        sys.exit(1)

    result = receipt_parser.parse_receipt(text)
    click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2 if pretty else None))


@cli.command()
@click.option('--in', 'input_dir', required=True, type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Input directory containing OCR text or JSON files')
@click.option('--out', 'output_dir', required=True, type=click.Path(path_type=Path),
              help='Output directory for the Excel workbook')
@click.option('--rules', default=str(DEFAULT_RULES_PATH), type=click.Path(path_type=Path),
              help='Path to category rules file')
@click.option('--max-workers', default=4, type=int, help='Maximum number of parallel workers')
@click.option('--summary', is_flag=True, help='Include summary block in Excel output')
@click.option('--debug', is_flag=True, help='Enable debug output')
def batch(input_dir: Path, output_dir: Path, rules: Path, max_workers: int, summary: bool, debug: bool):
    """
    Parse a folder of saved OCR results and export them to Excel.

    Example:
        receipts batch --in ./ocr --out ./out --summary
    """
    setup_logging(debug)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        processor = BatchProcessor(build_parser(rules, True), max_workers=max_workers)
        rows = processor.process_batch(input_dir)

        excel_path = output_dir / 'receipts.xlsx'
        ExcelExporter(excel_path).export(rows, processor.review_queue.items, include_summary=summary)

        click.echo("\n" + "=" * 50)
        click.echo("PROCESSING SUMMARY")
        click.echo("=" * 50)
        click.echo(f"Total files found: {processor.stats['total_files']}")
        click.echo(f"Successfully parsed: {processor.stats['processed']}")
        click.echo(f"Failed: {processor.stats['failed']}")
        click.echo(f"Items needing review: {len(processor.review_queue.items)}")
        click.echo(f"Excel: {excel_path}")

    except Exception as e:
        logger.error(f"Processing failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli()
