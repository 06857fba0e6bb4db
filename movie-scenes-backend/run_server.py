import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        # Stored videos and stitched movies should not trigger reloads
        reload_excludes=["media/*", "media/videos/*", "media/movies/*"]
    )
