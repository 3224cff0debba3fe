"""Command-line entry point for uploading images to OSS.

Usage:
    oss-uploader upload attachments/cat.png
    oss-uploader upload attachments/cat.png --note notes/pets.md
    oss-uploader key attachments/cat.png

Configuration is read from OSS_* environment variables; `--env-file` loads
them from a dotenv file first.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import click

from .config import UploaderConfig, load_uploader_config
from .errors import OssUploaderError
from .markdown import default_alt, insert_image_link, rewrite_image_links
from .storage.keys import extension_of, is_image_extension, make_content_key
from .uploader import Uploader

logger = logging.getLogger("oss_uploader.cli")


def _load_config(env_file: Path | None) -> UploaderConfig:
    if env_file is not None:
        from dotenv import load_dotenv

        load_dotenv(env_file, override=False)
    try:
        return load_uploader_config()
    except OssUploaderError as exc:
        raise click.ClickException(str(exc))


def _candidate_paths(image: Path, note: Path, vault: Path | None = None) -> list[str]:
    """Spellings under which the note may embed `image`.

    Obsidian writes embeds relative to the vault root; notes edited by hand
    often use a path relative to the note or the bare filename.
    """
    names = [image.name]
    try:
        rel = os.path.relpath(image.resolve(), note.resolve().parent)
    except ValueError:
        rel = None
    if rel and rel not in names:
        names.insert(0, rel.replace(os.sep, "/"))
    if vault is not None:
        try:
            vault_rel = image.resolve().relative_to(vault.resolve()).as_posix()
        except ValueError:
            vault_rel = None
        if vault_rel and vault_rel not in names:
            names.insert(0, vault_rel)
    return names


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--log-level", default="WARNING", show_default=True, help="Python logging level.")
def cli(log_level: str) -> None:
    """Upload images to Aliyun OSS under content-addressed keys."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s:%(name)s:%(message)s")


@cli.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--note", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Markdown note whose embeds of IMAGE are rewritten.")
@click.option(
    "--vault",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Vault root that embed paths in the note are relative to.",
)
@click.option("--skip-exist-check", is_flag=True, help="Upload without probing for an existing object.")
@click.option("--no-compress", is_flag=True, help="Upload the original bytes.")
@click.option("--env-file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="dotenv file with OSS_* settings.")
def upload(
    image: Path,
    note: Path | None,
    vault: Path,
    skip_exist_check: bool, no_compress: bool, env_file: Path | None) -> None:
    """Upload IMAGE and print its public URL."""
    if not is_image_extension(extension_of(image.name)):
        raise click.ClickException(f"not a supported image: {image.name}")
    cfg = _load_config(env_file)
    if no_compress:
        cfg = cfg.with_overrides(compress_enabled=False)

    def _progress(stage: str, percent: float) -> None:
        logger.info("%s %.0f%%", stage, percent)

    uploader = Uploader(cfg)
    try:
        result = uploader.upload(
            image.read_bytes(),
            image.name,
            progress=_progress,
            skip_exist_check=skip_exist_check,
        )
    except OssUploaderError as exc:
        raise click.ClickException(f"upload failed: {exc}")
    finally:
        uploader.close()

    if note is not None:
        content = note.read_text(encoding="utf-8")
        updated, count = content, 0
        for candidate in _candidate_paths(image, note, vault):
            updated, n = rewrite_image_links(updated, candidate, result.url, alt=default_alt(image.name))
            count += n
        if count == 0:
            updated = insert_image_link(content, result.url, default_alt(image.name))
            click.echo(f"Inserted new link into {note}", err=True)
        else:
            click.echo(f"Rewrote {count} link(s) in {note}", err=True)
        note.write_text(updated, encoding="utf-8")

    if result.existed:
        click.echo("Object already stored; upload skipped.", err=True)
    click.echo(result.url)


@cli.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--path-prefix", default=None, help="Override OSS_PATH_PREFIX.")
def key(image: Path, path_prefix: str | None) -> None:
    """Print the storage key IMAGE would be stored under (no network)."""
    if path_prefix is None:
        path_prefix = _load_config(None).path_prefix
    click.echo(make_content_key(path_prefix=path_prefix, data=image.read_bytes(), filename=image.name))


def main() -> None:  # pragma: no cover - console script shim
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
