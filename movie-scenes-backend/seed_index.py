#!/usr/bin/env python3
"""
Knowledge base seeding script.
Embeds the sample documents and writes them into the vector index so that
scene generation has context to retrieve on a fresh deployment.
"""

import sys

import config
from clients import OpenAIClient, PineconeClient, best_effort


def seed_index(llm, index, documents=None, namespace=config.PINECONE_NAMESPACE):
    """Embeds each document and upserts it as `seed-<n>` with its text and source as metadata."""
    documents = config.SEED_DOCUMENTS if documents is None else documents

    best_effort("Available indexes", index.list_indexes)
    best_effort("Index stats before seeding", index.describe_index_stats)

    seeded = 0
    for number, document in enumerate(documents, start=1):
        print(f"Processing item {number}/{len(documents)}")
        vector = {
            "id": f"seed-{number}",
            "values": llm.embed(document["text"]),
            "metadata": {"text": document["text"], "source": document["source"]},
        }
        seeded += index.upsert([vector], namespace=namespace)

    best_effort("Index stats after seeding", index.describe_index_stats)
    return seeded


def main():
    if not config.OPENAI_API_KEY or not config.PINECONE_API_KEY:
        print("❌ OPENAI_API_KEY and PINECONE_API_KEY must be set")
        sys.exit(1)

    try:
        llm = OpenAIClient(config.OPENAI_API_KEY)
        index = PineconeClient(config.PINECONE_API_KEY, config.PINECONE_INDEX_NAME,
                               index_host=config.PINECONE_INDEX_HOST)
        print(f"Seeding {config.PINECONE_INDEX_NAME}/{config.PINECONE_NAMESPACE}...")
        seeded = seed_index(llm, index)
        print(f"✅ Seeding complete: {seeded} vectors upserted")
    except Exception as e:
        print(f"❌ Error seeding index: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
