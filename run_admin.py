import os

if __name__ == "__main__":
    import uvicorn

    # log_config=None keeps the KVFormatter set up by create_app()
    uvicorn.run(
        "admin.app.main:app",
        host=os.environ.get("ADMIN_HOST", "0.0.0.0"),
        port=int(os.environ.get("ADMIN_PORT", 8000)),
        log_config=None,
    )
