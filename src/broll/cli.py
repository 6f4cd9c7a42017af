"""CLI entry point for the b-roll director."""

import asyncio
import logging
import typer
from pathlib import Path
from typing import Optional

from . import __version__
from .config import config
from .errors import BrollError
from .export import render_prompts
from .gateway import GenerationGateway, GoogleGenerationGateway
from .history import HistoryStore
from .models import (
    AspectRatio,
    DEFAULT_STYLE,
    GenerationMode,
    Scene,
    SceneStatus,
    ScriptSource,
    Storyboard,
    VideoSource,
    VISUAL_STYLES,
    get_style,
)
from .orchestrator import BatchOrchestrator, BatchReport
from .prompts import pretty_prompt
from .store import SceneStore

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="broll",
    help="AI-powered B-roll director",
    no_args_is_help=True
)
history_app = typer.Typer(help="Browse and reload past analysis sessions", no_args_is_help=True)
app.add_typer(history_app, name="history")

DEFAULT_STORYBOARD = Path("storyboard.yaml")

_STATUS_ICONS = {
    SceneStatus.PENDING: "⏳",
    SceneStatus.GENERATING_IMAGE: "🎨",
    SceneStatus.GENERATING_VIDEO: "🎬",
    SceneStatus.COMPLETED: "✅",
    SceneStatus.ERROR: "❌",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"broll version {__version__}")
        raise typer.Exit()


def create_gateway() -> GenerationGateway:
    """Gateway used by every command that talks to a service."""
    return GoogleGenerationGateway()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """B-roll Director - Turn scripts and videos into generated B-roll."""
    pass


def _preview(text: str, limit: int = 60) -> str:
    text = " ".join(text.split())
    return text[:limit] + "..." if len(text) > limit else text


def _recover(scene: Scene) -> Scene:
    """Settle a scene left in flight by an interrupted run."""
    if not scene.status.in_flight:
        return scene
    status = SceneStatus.COMPLETED if scene.media_url else SceneStatus.PENDING
    logger.warning(f"Scene {scene.id} was interrupted while {scene.status.value}; now {status.value}")
    return scene.model_copy(update={"status": status})


def _check_config(validate) -> None:
    try:
        validate()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)


def _load_storyboard(path: Path) -> Storyboard:
    if not path.exists():
        typer.echo(f"❌ No storyboard found at {path}")
        typer.echo("   Run 'broll analyze' to create one")
        raise typer.Exit(1)

    try:
        board = Storyboard.from_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error loading storyboard: {e}")
        raise typer.Exit(1)

    board.scenes = [_recover(scene) for scene in board.scenes]
    return board


def _echo_scene_result(scene: Scene) -> None:
    if scene.status == SceneStatus.COMPLETED:
        typer.echo(f"   ✅ {scene.id}: Generated → {scene.media_url}")
    elif scene.status == SceneStatus.ERROR:
        typer.echo(f"   ❌ {scene.id}: Failed - {scene.error}")


def _build_orchestrator(board: Storyboard, path: Optional[Path] = None) -> BatchOrchestrator:
    """Orchestrator over the storyboard's scenes.

    With ``path`` set every scene change is written back to the storyboard
    file as it happens.
    """
    store = SceneStore(board.scenes)

    if path is not None:
        def persist(scene: Scene) -> None:
            board.scenes = list(store.scenes)
            board.to_yaml(path)

        store.subscribe(persist)
    store.subscribe(_echo_scene_result)

    return BatchOrchestrator(
        store,
        create_gateway(),
        style=get_style(board.style_id),
        aspect_ratio=board.aspect_ratio,
    )


def _apply_settings(board: Storyboard, style: Optional[str], aspect_ratio: Optional[AspectRatio]) -> None:
    if style:
        try:
            board.style_id = get_style(style).id
        except KeyError as e:
            typer.echo(f"❌ {e.args[0]}")
            raise typer.Exit(1)
    if aspect_ratio:
        board.aspect_ratio = aspect_ratio


@app.command()
def analyze(
    source: str = typer.Argument(
        ...,
        help="Script text, a path to a script file, or a path to a video with --video"
    ),
    video: bool = typer.Option(
        False,
        "--video",
        help="Treat SOURCE as a video file to reverse-engineer"
    ),
    output: Path = typer.Option(
        DEFAULT_STORYBOARD,
        "--output",
        "-o",
        help="Output storyboard file path"
    ),
    style: Optional[str] = typer.Option(
        None,
        "--style",
        help="Visual style id (see 'broll styles')"
    ),
    aspect_ratio: AspectRatio = typer.Option(
        AspectRatio.LANDSCAPE,
        "--aspect-ratio",
        "-a",
        help="Aspect ratio for generated media"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Break a script or video down into scenes with visual prompts."""
    setup_logging(verbose)

    try:
        if video:
            analysis_source = VideoSource.from_path(Path(source), config.max_upload_bytes)
        else:
            script_path = Path(source)
            text = script_path.read_text() if script_path.is_file() else source
            analysis_source = ScriptSource(text)
    except (BrollError, OSError) as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    try:
        style_id = get_style(style).id if style else DEFAULT_STYLE.id
    except KeyError as e:
        typer.echo(f"❌ {e.args[0]}")
        raise typer.Exit(1)

    # Video analysis runs on Gemini, script analysis on Claude
    _check_config(config.validate_google_required if video else config.validate_required)

    typer.echo(f"🎬 Analyzing {analysis_source.display_name}")
    orchestrator = BatchOrchestrator(SceneStore(), create_gateway(), history=HistoryStore())

    try:
        session = asyncio.run(orchestrator.analyze(analysis_source))
    except BrollError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    board = Storyboard(
        session=session,
        scenes=list(orchestrator.store.scenes),
        style_id=style_id,
        aspect_ratio=aspect_ratio,
    )
    try:
        board.to_yaml(output)
        typer.echo(f"\n✅ Storyboard saved: {output}")
    except Exception as e:
        typer.echo(f"❌ Error saving storyboard: {e}")
        raise typer.Exit(1)

    typer.echo(f"\n📽️  Scene breakdown ({len(board.scenes)} scenes):")
    for scene in board.scenes:
        typer.echo(f"   • {scene.id}: {_preview(scene.original_text, 70)}")


@app.command()
def status(
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD,
        "--storyboard",
        "-s",
        help="Path to storyboard YAML file"
    )
) -> None:
    """Show storyboard status."""
    board = _load_storyboard(storyboard)
    style = get_style(board.style_id)

    typer.echo(f"📁 Session: {board.session.name}")
    typer.echo(f"   Style: {style.name}")
    typer.echo(f"   Aspect ratio: {board.aspect_ratio.value}")
    typer.echo(f"   Scenes: {len(board.scenes)}")

    counts = {s: 0 for s in SceneStatus}
    for scene in board.scenes:
        counts[scene.status] += 1
    typer.echo("   " + ", ".join(f"{s.value}: {n}" for s, n in counts.items() if n))

    typer.echo("\n📽️  Scenes:")
    for scene in board.scenes:
        typer.echo(f"   {_STATUS_ICONS[scene.status]} {scene.id}: {_preview(scene.original_text)}")
        if scene.media_url:
            typer.echo(f"      → {scene.media_url}")
        if scene.error:
            typer.echo(f"      ! {scene.error}")


def _run_batch(
    mode: GenerationMode,
    storyboard: Path,
    style: Optional[str],
    aspect_ratio: Optional[AspectRatio],
    verbose: bool,
) -> None:
    setup_logging(verbose)
    if mode is GenerationMode.IMAGE:
        _check_config(config.validate_google_required)
    board = _load_storyboard(storyboard)
    _apply_settings(board, style, aspect_ratio)
    board.to_yaml(storyboard)

    orchestrator = _build_orchestrator(board, storyboard)
    label = "image" if mode is GenerationMode.IMAGE else "clip"
    typer.echo(f"{'🎨' if mode is GenerationMode.IMAGE else '🎬'} Generating {label}s: {storyboard}")
    typer.echo(f"   Style: {orchestrator.style.name}")
    typer.echo(f"   Aspect ratio: {orchestrator.aspect_ratio.value}")
    typer.echo(f"   Max concurrent: {orchestrator.batch_size(mode)}\n")

    try:
        report: BatchReport = asyncio.run(orchestrator.run_batch(mode))
    except BrollError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    if not report.dispatched:
        typer.echo(f"✅ No scenes need {label}s")
        return

    typer.echo(f"\n📊 Summary:")
    typer.echo(f"   Total scenes: {len(orchestrator.store)}")
    typer.echo(f"   Generated: {report.completed}")
    typer.echo(f"   Failed: {report.failed}")

    if report.failed > 0:
        typer.echo(f"\n⚠️  {report.failed} scene(s) failed to generate")
        raise typer.Exit(1)
    typer.echo(f"\n✅ All {label}s generated successfully!")


@app.command()
def images(
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD, "--storyboard", "-s", help="Path to storyboard YAML file"
    ),
    style: Optional[str] = typer.Option(None, "--style", help="Visual style id"),
    aspect_ratio: Optional[AspectRatio] = typer.Option(
        None, "--aspect-ratio", "-a", help="Aspect ratio for generated images"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Generate stills for every scene that has no image yet."""
    _run_batch(GenerationMode.IMAGE, storyboard, style, aspect_ratio, verbose)


@app.command()
def videos(
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD, "--storyboard", "-s", help="Path to storyboard YAML file"
    ),
    style: Optional[str] = typer.Option(None, "--style", help="Visual style id"),
    aspect_ratio: Optional[AspectRatio] = typer.Option(
        None, "--aspect-ratio", "-a", help="Aspect ratio (mapped to 16:9 or 9:16 for video)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Generate clips with Veo for every scene that has no video yet.

    Scenes are submitted in pairs and each job is polled until it finishes.
    """
    _run_batch(GenerationMode.VIDEO, storyboard, style, aspect_ratio, verbose)


@app.command()
def generate(
    scene_id: str = typer.Argument(..., help="Scene to generate"),
    video: bool = typer.Option(False, "--video", help="Generate a clip instead of a still"),
    prompt_file: Optional[Path] = typer.Option(
        None,
        "--prompt-file",
        "-p",
        help="Replace the scene's visual prompt with this file's contents first",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD, "--storyboard", "-s", help="Path to storyboard YAML file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Generate media for a single scene."""
    setup_logging(verbose)
    if not video:
        _check_config(config.validate_google_required)
    board = _load_storyboard(storyboard)
    orchestrator = _build_orchestrator(board, storyboard)
    mode = GenerationMode.VIDEO if video else GenerationMode.IMAGE
    prompt = prompt_file.read_text() if prompt_file else None

    typer.echo(f"{'🎬' if video else '🎨'} Generating {mode.value} for {scene_id}")
    try:
        scene = asyncio.run(orchestrator.generate_one(scene_id, mode, prompt=prompt))
    except BrollError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    if scene.status == SceneStatus.ERROR:
        raise typer.Exit(1)


@app.command()
def edit(
    scene_id: str = typer.Argument(..., help="Scene to edit"),
    text: str = typer.Argument(..., help="New source text for the scene"),
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD, "--storyboard", "-s", help="Path to storyboard YAML file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Replace a scene's text and regenerate its visual prompt.

    Any existing media for the scene is discarded.
    """
    setup_logging(verbose)
    _check_config(config.validate_required)
    board = _load_storyboard(storyboard)
    orchestrator = _build_orchestrator(board, storyboard)

    typer.echo(f"✏️  Regenerating prompt for {scene_id}")
    try:
        scene = asyncio.run(orchestrator.regenerate_prompt(scene_id, text))
    except BrollError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    typer.echo(pretty_prompt(scene.visual_prompt))


@app.command()
def export(
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD, "--storyboard", "-s", help="Path to storyboard YAML file"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write prompts to this file instead of stdout"
    ),
) -> None:
    """Export every scene's prompt as plain text."""
    board = _load_storyboard(storyboard)
    text = render_prompts(board.scenes, board.session.type, get_style(board.style_id), board.aspect_ratio)

    if output is None:
        typer.echo(text)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text)
    typer.echo(f"✅ Prompts exported: {output}")


@app.command()
def styles() -> None:
    """List available visual styles."""
    for style in VISUAL_STYLES:
        typer.echo(f"   • {style.id}: {style.name}")
        typer.echo(f"     {style.prompt_modifier}")


@history_app.command("list")
def history_list() -> None:
    """List saved sessions, newest first."""
    sessions = HistoryStore().load()
    if not sessions:
        typer.echo("No saved sessions")
        return

    for index, session in enumerate(sessions):
        typer.echo(f"   [{index}] {session.name} ({len(session.scenes)} scenes, id {session.id})")


@history_app.command("load")
def history_load(
    index: int = typer.Argument(..., help="Session number from 'broll history list'"),
    output: Path = typer.Option(
        DEFAULT_STORYBOARD, "--output", "-o", help="Output storyboard file path"
    ),
) -> None:
    """Restore a saved session as the working storyboard."""
    try:
        session = HistoryStore().get(index)
    except IndexError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    board = Storyboard(session=session, scenes=session.scenes)
    board.to_yaml(output)
    typer.echo(f"✅ Loaded {session.name} ({len(board.scenes)} scenes) into {output}")


if __name__ == "__main__":
    app()
