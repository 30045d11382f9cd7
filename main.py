import uvicorn
from omnia.main import app

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8002,
        reload=True,
        workers=1,  # live exam sessions are held in process memory
        ws_ping_interval=None,
        ws_ping_timeout=None
    )
