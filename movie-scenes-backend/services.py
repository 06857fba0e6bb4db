"""
Service classes for the Movie Scenes backend.
Contains RetrievalClient, GenerationClient and the SceneGenerator orchestrator.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from config import (
    PINECONE_NAMESPACE,
    RETRIEVAL_TOP_K,
    SCENE_TEMPERATURE,
    ANALYSIS_TEMPERATURE,
    SCENE_PROMPT_TEMPLATE,
    CONTINUATION_ANALYSIS_TEMPLATE,
    CONTINUATION_SCENES_TEMPLATE,
)
from clients import best_effort
from models import Scene
from parsers import build_context, parse_numbered_scenes, parse_delimited_scenes
from schemas import SceneRecord


class RetrievalClient:
    """Embeds a query and returns the best-matching knowledge snippets."""

    def __init__(self, llm, index, namespace: str = PINECONE_NAMESPACE, top_k: int = RETRIEVAL_TOP_K):
        self.llm = llm
        self.index = index
        self.namespace = namespace
        self.top_k = top_k

    def retrieve(self, text: str) -> list:
        best_effort("Available indexes", self.index.list_indexes)
        best_effort("Index stats", self.index.describe_index_stats)

        logging.info("🧮 Generating embeddings...")
        vector = self.llm.embed(text)

        matches = self.index.query(vector, top_k=self.top_k, namespace=self.namespace, include_metadata=True)
        if not matches:
            logging.info("No matches found in vector index response")
            return []
        return sorted(matches, key=lambda m: m.get("score") or 0.0, reverse=True)


class GenerationClient:
    """Fills a prompt template and sends it to the completion model."""

    def __init__(self, llm):
        self.llm = llm

    def generate(self, template: str, temperature: float, **variables) -> str:
        prompt = template.format(**variables)
        logging.info(f"📝 Sending prompt to completion model (temperature={temperature})")
        text = self.llm.complete(prompt, temperature=temperature)
        logging.info(f"Raw response: {text!r}")
        return text


def _format_existing_scenes(existing_scenes: List[dict]) -> str:
    lines = []
    for position, scene in enumerate(existing_scenes, start=1):
        lines.append(f"Scene {scene.get('id', position)}: {scene.get('text', '')}")
    return "\n".join(lines)


class SceneGenerator:
    """Turns movie ideas into scene lists and persists them per movie."""

    def __init__(self, retrieval: RetrievalClient, generation: GenerationClient, db: Session):
        self.retrieval = retrieval
        self.generation = generation
        self.db = db

    def generate_initial_scenes(self, movie_idea: str, movie_id: str = None) -> List[SceneRecord]:
        logging.info(f"🎬 Received movie idea: '{movie_idea}'")
        matches = self.retrieval.retrieve(movie_idea)
        context = build_context(matches)
        logging.info(f"Context built: {context or 'No context available'}")

        raw_text = self.generation.generate(
            SCENE_PROMPT_TEMPLATE,
            temperature=SCENE_TEMPERATURE,
            movie_idea=movie_idea,
            context=context,
        )
        scenes = parse_numbered_scenes(raw_text)
        logging.info(f"✅ Parsed {len(scenes)} scenes")

        if movie_id:
            self._persist(movie_id, scenes)
        return scenes

    def generate_continuation_scenes(self, movie_id: str, existing_scenes: List[dict],
                                     continuation_idea: str, count: int) -> List[SceneRecord]:
        first_number = len(existing_scenes) + 1
        logging.info(f"🎬 Continuing movie {movie_id} with {count} scenes from #{first_number}: '{continuation_idea}'")

        analysis = self.generation.generate(
            CONTINUATION_ANALYSIS_TEMPLATE,
            temperature=ANALYSIS_TEMPERATURE,
            existing_scenes=_format_existing_scenes(existing_scenes),
            continuation_idea=continuation_idea,
        )

        raw_text = self.generation.generate(
            CONTINUATION_SCENES_TEMPLATE,
            temperature=SCENE_TEMPERATURE,
            analysis=analysis,
            count=count,
            first_number=first_number,
            last_number=first_number + count - 1,
        )
        scenes = parse_delimited_scenes(raw_text, expected_count=count, starting_number=first_number)

        self._persist(movie_id, scenes)
        return scenes

    def _persist(self, movie_id: str, scenes: List[SceneRecord]):
        rows = [
            Scene(
                movie_id=movie_id,
                scene_number=scene.id,
                title=scene.title,
                text=scene.text,
                duration=scene.duration,
                type=scene.type,
                status=scene.status,
            )
            for scene in scenes
        ]
        try:
            self.db.add_all(rows)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for scene, row in zip(scenes, rows):
            scene.movieId = movie_id
            scene.documentId = row.id
        logging.info(f"💾 Saved {len(rows)} scenes for movie {movie_id}")
