import sys
from pathlib import Path

# 添加项目根目录到 Python 路径
project_root = str(Path(__file__).parent)
sys.path.append(project_root)

from csvinsight.app import app  # noqa: E402

if __name__ == "__main__":
    import uvicorn
    print("🎯 CSVInsight - CSV Analysis & Cleaning")
    print("📍 Backend API: http://localhost:8000")
    print("📍 API Docs: http://localhost:8000/docs")
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
