"""
Parsing helpers that turn raw model output into scene records,
and search matches into prompt context.
"""

import re
import logging
from typing import List

from config import DEFAULT_SCENE_DURATION
from errors import SceneParseError
from schemas import SceneRecord

NUMBERED_SPLIT = re.compile(r"\d+\.\s+")
SCENE_HEADER = re.compile(r"^(Scene \w+):\s*(.*)", re.DOTALL)
BLOCK_NUMBER = re.compile(r"Number:\s*(\d+)")
BLOCK_DESCRIPTION = re.compile(r"Description:\s*(.*?)\s*(?:SCENE_END|$)", re.DOTALL)


def _scene(scene_id: int, title: str, text: str) -> SceneRecord:
    return SceneRecord(
        id=scene_id,
        title=title,
        text=text,
        duration=DEFAULT_SCENE_DURATION,
        type="scene",
        status="pending",
    )


def parse_numbered_scenes(raw_text: str) -> List[SceneRecord]:
    """
    Parses a numbered list ("1. ...", "2. ...") into scenes with ids 1..n.
    A fragment starting with "Scene <label>:" keeps that label as its title.
    """
    fragments = [f for f in NUMBERED_SPLIT.split(raw_text or "") if f.strip()]

    scenes = []
    for index, fragment in enumerate(fragments):
        match = SCENE_HEADER.match(fragment)
        if match and match.group(2).strip():
            title, text = match.group(1), match.group(2).strip()
        else:
            title, text = f"Scene {index + 1}", fragment.strip()
        scenes.append(_scene(index + 1, title, text))
    return scenes


def parse_delimited_scenes(raw_text: str, expected_count: int, starting_number: int) -> List[SceneRecord]:
    """
    Parses SCENE_START / SCENE_END blocks and enforces that exactly
    `expected_count` scenes numbered from `starting_number` came back.
    Any deviation fails the whole parse.
    """
    scenes = []
    for block in (raw_text or "").split("SCENE_START"):
        if not block.strip():
            continue

        number_match = BLOCK_NUMBER.search(block)
        description_match = BLOCK_DESCRIPTION.search(block)
        if not number_match or not description_match or not description_match.group(1).strip():
            logging.error(f"❌ Malformed scene block:\n{block.strip()}")
            raise SceneParseError(
                "Failed to parse generated scenes",
                details=f"Scene block is missing a Number or Description field: {block.strip()[:200]}",
            )

        number = int(number_match.group(1))
        scenes.append(_scene(number, f"Scene {number}", description_match.group(1).strip()))

    if len(scenes) != expected_count:
        raise SceneParseError(
            "Generated scene count does not match the request",
            details=f"Expected {expected_count} scenes, got {len(scenes)}",
        )

    expected_ids = list(range(starting_number, starting_number + expected_count))
    actual_ids = [scene.id for scene in scenes]
    if actual_ids != expected_ids:
        raise SceneParseError(
            "Generated scene numbers are out of sequence",
            details=f"Expected scene numbers {expected_ids}, got {actual_ids}",
        )

    return scenes


def build_context(matches: list) -> str:
    """Flattens similarity-search matches into a bulleted context block."""
    parts = []
    for match in matches or []:
        logging.info(f"Processing match score: {match.get('score')}")
        metadata = match.get("metadata")
        if not metadata:
            logging.warning(f"Match missing metadata: {match.get('id')}")
            continue
        if not metadata.get("text"):
            logging.warning(f"Match metadata missing text: {match.get('id')}")
            continue

        parts.append(f"- {metadata['text']}")
        if metadata.get("source"):
            parts.append(f"  Source: {metadata['source']}")
        parts.append("")

    return "\n".join(parts)
