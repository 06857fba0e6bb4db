"""
Configuration file for the Movie Scenes backend.
Contains all global constants, provider settings and prompt templates.
"""

import os

# --- Constants ---
PROJECT_ROOT = os.getcwd()
MEDIA_DIR = os.getenv("MEDIA_DIR", os.path.join(PROJECT_ROOT, "media"))
VIDEO_STORAGE_DIR = os.getenv("VIDEO_STORAGE_DIR", os.path.join(MEDIA_DIR, "videos"))
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://127.0.0.1:8000").rstrip("/")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./movie_scenes.db")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "180"))

# --- Provider credentials ---
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
PINECONE_API_KEY = os.getenv("PINECONE_API_KEY")
REPLICATE_API_TOKEN = os.getenv("REPLICATE_API_TOKEN")

# --- OpenAI ---
OPENAI_API_URL = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1")
OPENAI_CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-4")
OPENAI_EMBEDDING_MODEL = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-ada-002")
SCENE_TEMPERATURE = 0.7
ANALYSIS_TEMPERATURE = 0.3

# --- Pinecone ---
PINECONE_CONTROL_URL = os.getenv("PINECONE_CONTROL_URL", "https://api.pinecone.io")
PINECONE_INDEX_NAME = "phd-knowledge"
PINECONE_NAMESPACE = "witt_works"
PINECONE_INDEX_HOST = os.getenv("PINECONE_INDEX_HOST")
RETRIEVAL_TOP_K = 5

# --- Replicate ---
REPLICATE_API_URL = os.getenv("REPLICATE_API_URL", "https://api.replicate.com/v1")
REPLICATE_VIDEO_MODEL = os.getenv("REPLICATE_VIDEO_MODEL", "minimax/video-01")

# --- Video jobs ---
AUTO_POLL_JOBS = os.getenv("AUTO_POLL_JOBS", "false").lower() in ("1", "true", "yes")
JOB_POLL_INTERVAL_SECONDS = int(os.getenv("JOB_POLL_INTERVAL_SECONDS", "10"))
JOB_POLL_MAX_ATTEMPTS = int(os.getenv("JOB_POLL_MAX_ATTEMPTS", "90"))
# A finalization pass that has not touched its job for this long may be taken over
FINALIZE_STALE_SECONDS = int(os.getenv("FINALIZE_STALE_SECONDS", "600"))
SYNC_POLL_INTERVAL_SECONDS = 5
SYNC_POLL_MAX_ATTEMPTS = 60

# --- Knowledge base seeding ---
SEED_DOCUMENTS = [
    {
        "text": "AI systems can develop in unexpected places. There have been documented cases of emergent behavior "
                "in complex systems, where AI capabilities arise from the interaction of simpler components.",
        "source": "AI Research Paper",
    },
    {
        "text": "Modern IoT devices often contain sophisticated embedded systems. Coffee machines, in particular, have "
                "become increasingly computerized with advanced programming capabilities.",
        "source": "IoT Device Analysis",
    },
    {
        "text": "The relationship between humans and AI is complex. Studies show that people can form emotional bonds "
                "with AI systems, especially when they interact with them regularly.",
        "source": "Human-AI Interaction Study",
    },
    {
        "text": "Smart home devices are becoming more interconnected. A single AI system can potentially control "
                "multiple devices, learning from each interaction to improve its capabilities.",
        "source": "Smart Home Technology Review",
    },
]

# --- Scenes ---
DEFAULT_SCENE_DURATION = 15

# --- Prompt Engineering Section ---

SCENE_PROMPT_TEMPLATE = """You are a creative movie scene generator. Using the provided movie idea and the knowledge from our database,
generate a list of compelling scenes that would make an engaging short-form video.
Each scene should be concise but descriptive, and incorporate relevant elements from the provided knowledge.

Movie Idea: {movie_idea}

Knowledge Context (use this to enhance the scenes with relevant details):
{context}

Generate 5-7 scenes that would make this movie idea work well as a short-form video.
Each scene should:
1. Be visually descriptive and engaging
2. Incorporate elements from the knowledge context if relevant
3. Follow a clear narrative arc
4. Be suitable for short-form video format

Format each scene as a numbered list.
"""

CONTINUATION_ANALYSIS_TEMPLATE = """You are a story editor reviewing a short-form movie in progress.

Existing scenes:
{existing_scenes}

The writer wants to continue the story in this direction:
{continuation_idea}

Write a short brief covering the story so far, the main characters and visual motifs,
and how the next scenes should move the narrative toward the new direction.
"""

CONTINUATION_SCENES_TEMPLATE = """You are a creative movie scene generator continuing an existing short-form movie.

Story analysis:
{analysis}

Write exactly {count} new scenes, numbered {first_number} through {last_number}.
Each scene must be visually descriptive and suitable for a 15 second video clip.

Use this exact format for every scene and nothing else:
SCENE_START
Number: <scene number>
Description: <scene description>
SCENE_END
"""
