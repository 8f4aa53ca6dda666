import logging
import os
import sys
from pathlib import Path

# Add the server directory to Python path
server_dir = str(Path(__file__).parent)
if server_dir not in sys.path:
    sys.path.append(server_dir)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from controllers.course_controller import router as course_router
from controllers.transaction_controller import router as transaction_router
from controllers.user_course_progress_controller import router as user_course_progress_router

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title="Course Marketplace API")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Hello World"}


# Courses are readable without authentication; the rest require a bearer token
app.include_router(course_router, prefix="/courses", tags=["Courses"])
app.include_router(transaction_router, prefix="/transactions", tags=["Transactions"])
app.include_router(user_course_progress_router, prefix="/users/course-progress", tags=["User Course Progress"])
