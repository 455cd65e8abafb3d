"""
Brand Engine — Command-line runner

Usage:
  python -m brand_engine.main --image logo.png
  python -m brand_engine.main --image logo.png --categories T-Shirt Cap "Vertical Video"
  python -m brand_engine.main --image logo.png --theme "summer festival" --refine
  python -m brand_engine.main --image logo.png --analyze-only
  python -m brand_engine.main --list-categories
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.rule import Rule

from .config import EngineConfig
from .dispatcher import DispatchReport
from .errors import BrandEngineError
from .models import Category, StyleProfile, category_groups
from .session import BrandSession
from .zip_exporter import save_asset

console = Console()

OUTPUTS_ROOT = Path("outputs")

DEFAULT_CATEGORIES = [Category.T_SHIRT]


# ── CLI ───────────────────────────────────────────────────────────────────────

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Brand Engine — one reference image in, a branded mockup kit out"
    )
    parser.add_argument("--image", help="Reference brand image (png, jpg, webp)")
    parser.add_argument(
        "--categories",
        nargs="+",
        default=None,
        help="Categories to generate (default: T-Shirt). See --list-categories",
    )
    parser.add_argument("--theme", default=None, help="Optional campaign theme")
    parser.add_argument(
        "--output",
        default=None,
        help="Output directory (default: outputs/<timestamp>)",
    )
    parser.add_argument(
        "--analyze-only",
        action="store_true",
        help="Stop after the style profile",
    )
    parser.add_argument(
        "--refine",
        action="store_true",
        help="After generating, enter the interactive refine/undo loop",
    )
    parser.add_argument(
        "--list-categories",
        action="store_true",
        help="Print the available categories and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)
    if not args.list_categories and not args.image:
        parser.error("--image is required")
    return args


def parse_categories(values: Optional[Sequence[str]]) -> List[Category]:
    if not values:
        return list(DEFAULT_CATEGORIES)
    return [Category.parse(v) for v in values]


# ── Display helpers ───────────────────────────────────────────────────────────

def display_categories() -> None:
    for group, cats in category_groups().items():
        console.print(f"[bold]{group}[/bold]")
        for cat in cats:
            kind = "[magenta]video[/magenta]" if cat.is_video else "[cyan]image[/cyan]"
            console.print(f"  {cat.value:<18} {kind}  [dim]{cat.aspect_ratio}[/dim]")


def _swatch(color: str) -> str:
    if re.fullmatch(r"#[0-9a-fA-F]{6}", color):
        return f"[{color}]■[/{color}] {color}"
    return color


def display_profile(profile: StyleProfile) -> None:
    """Pretty-print the style profile to the terminal."""
    palette_str = "  ".join(_swatch(c) for c in profile.palette)
    body = (
        f"[bold]Style:[/bold] {profile.style}\n"
        f"[bold]Fonts:[/bold] {profile.fonts}\n"
        f"[bold]Palette:[/bold] {palette_str}\n"
        f"[bold]Keywords:[/bold] {', '.join(profile.keywords)}\n\n"
        f"[italic]{profile.description}[/italic]"
    )
    console.print(Panel(body, title="[bold]Brand DNA[/bold]", border_style="blue"))


def display_report(report: DispatchReport) -> None:
    for outcome in sorted(report.outcomes, key=lambda o: o.category.value):
        if outcome.ok:
            console.print(
                f"  [green]✓ {outcome.category.value}[/green] "
                f"[dim]({outcome.elapsed_seconds:.1f}s)[/dim]"
            )
        else:
            console.print(f"  [red]✗ {outcome.category.value}: {outcome.error}[/red]")


def save_profile_json(profile: StyleProfile, output_dir: Path) -> Path:
    json_path = output_dir / "style_profile.json"
    json_path.write_text(profile.model_dump_json(indent=2), encoding="utf-8")
    return json_path


def _parse_box(text: str) -> Tuple[int, int, int, int]:
    x0, y0, x1, y1 = (int(v) for v in text.replace(" ", "").split(","))
    return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)


def box_strokes(box: Tuple[int, int, int, int], brush_size: int = 20) -> List[List[Tuple[float, float]]]:
    """Cover a rectangle with horizontal brush strokes."""
    x0, y0, x1, y1 = box
    step = max(1, brush_size // 2)
    return [[(x0, y), (x1, y)] for y in range(y0, y1 + 1, step)]


# ── Interactive refinement ────────────────────────────────────────────────────

async def refinement_loop(session: BrandSession, output_dir: Path) -> None:
    """
    Paint-to-edit from the terminal. Each round picks an image asset, a
    rectangular region (x0,y0,x1,y1) and an instruction, or undoes the last
    edit on an asset.
    """
    while True:
        images = [a for a in session.gallery if not a.category.is_video]
        if not images:
            console.print("  [dim]No image assets to refine.[/dim]")
            return

        console.print(Rule("[bold]Refine[/bold]"))
        for i, asset in enumerate(images, 1):
            console.print(f"  {i}. {asset.label} [dim]({asset.short_id}, {len(asset.history)} edit(s))[/dim]")

        choice = Prompt.ask("Asset number, 'undo <n>', or 'done'", default="done").strip().lower()
        if choice in ("done", "q", "quit", ""):
            return

        try:
            if choice.startswith("undo"):
                asset = images[int(choice.split()[1]) - 1]
                editor = session.open_editor(asset.id)
                restored = editor.undo()
                if restored.media == asset.media:
                    console.print("  [yellow]⚠ Nothing to undo[/yellow]")
                else:
                    path = save_asset(restored, output_dir)
                    console.print(f"  [green]✓ Undone[/green] → {path.name}")
                continue

            asset = images[int(choice) - 1]
            editor = session.open_editor(asset.id)
            w, h = editor.canvas.size
            box = _parse_box(Prompt.ask(f"Region x0,y0,x1,y1 (image is {w}×{h})"))
            instruction = Prompt.ask("Describe the change")

            for stroke in box_strokes(box):
                editor.draw(stroke)
            editor.instruction = instruction

            t0 = time.time()
            with console.status("Refining..."):
                updated = await editor.submit()
            path = save_asset(updated, output_dir)
            console.print(f"  [green]✓ Refined in {time.time() - t0:.1f}s[/green] → {path.name}")

        except (ValueError, IndexError):
            console.print("  [yellow]⚠ Could not understand that — try again.[/yellow]")
        except BrandEngineError as e:
            console.print(f"  [red]✗ {e}[/red]")
        finally:
            session.close_editor()


# ── Main ──────────────────────────────────────────────────────────────────────

async def run(args: argparse.Namespace, config: EngineConfig) -> int:
    pipeline_start = time.time()
    categories = parse_categories(args.categories)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path(args.output) if args.output else OUTPUTS_ROOT / timestamp
    output_dir.mkdir(parents=True, exist_ok=True)

    console.print(Rule("[bold magenta]Brand Engine[/bold magenta]"))
    console.print(
        f"  Image: [bold]{args.image}[/bold]  |  "
        f"Categories: [bold]{', '.join(c.value for c in categories)}[/bold]  |  "
        f"Output: [bold]{output_dir}[/bold]"
    )

    async with BrandSession(config) as session:
        # ── Step 1: Analyze reference image ───────────────────────────────────
        console.print("\n[bold]Step 1/3 — Analyzing brand image (Gemini)[/bold]")
        t0 = time.time()
        profile = await session.analyze_file(args.image)
        console.print(f"  [green]✓ Done in {time.time() - t0:.1f}s[/green]")
        display_profile(profile)
        console.print(f"  [dim]Saved: {save_profile_json(profile, output_dir)}[/dim]")

        if args.analyze_only:
            return 0

        # ── Step 2: Generate ──────────────────────────────────────────────────
        console.print(f"\n[bold]Step 2/3 — Generating {len(categories)} asset(s)[/bold]")
        if any(c.is_video for c in categories):
            console.print("  [dim]video spots can take a few minutes[/dim]")
        with console.status("Generating..."):
            report = await session.generate(categories, theme=args.theme)
        display_report(report)

        for asset in session.gallery:
            save_asset(asset, output_dir)

        if args.refine:
            await refinement_loop(session, output_dir)

        # ── Step 3: Export ────────────────────────────────────────────────────
        console.print("\n[bold]Step 3/3 — Packaging kit[/bold]")
        zip_path = session.export_zip(output_dir)
        if zip_path:
            console.print(f"  [green]✓[/green] {zip_path}")
        else:
            console.print("  [yellow]⚠ Nothing to package[/yellow]")

        console.print(
            Panel(
                f"{len(session.gallery)} asset(s) from {len(categories)} categor"
                f"{'y' if len(categories) == 1 else 'ies'} in [bold]{time.time() - pipeline_start:.0f}s[/bold]\n"
                f"Outputs saved to: [bold]{output_dir}[/bold]",
                title="[bold green]Kit Complete[/bold green]",
                border_style="green",
            )
        )
        return 0 if report.assets else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s — %(levelname)s — %(name)s — %(message)s",
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    if args.list_categories:
        display_categories()
        return 0

    try:
        config = EngineConfig.from_env()
        parse_categories(args.categories)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 2
    if not config.has_credential:
        console.print("[bold red]Error:[/bold red] GEMINI_API_KEY not set.")
        console.print("Create a .env file from .env.example and add your key.")
        return 1
    try:
        return asyncio.run(run(args, config))
    except (BrandEngineError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
