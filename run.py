"""
定员计算服务入口
运行: python run.py
访问: http://localhost:8000/docs
"""
import logging
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv


def check_standards():
    """检查定员标准目录"""
    standards_dir = Path(os.getenv("STAFFING_STANDARDS_DIR", "data/standards"))
    if not any(standards_dir.glob("*.json")):
        print(f"[WARN]  定员标准目录中没有 JSON 文件: {standards_dir}")
        print("可通过 PUT /api/standards/{id} 上传标准。")
        print()


def main():
    print("=" * 60)
    print("铁路客运乘务定员计算服务")
    print("=" * 60)
    print()

    load_dotenv()
    check_standards()

    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "True").lower() == "true"
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"[*] 服务地址: http://{host}:{port}")
    print(f"[*] 项目目录: {Path.cwd()}")
    print(f"[*] 自动重启: {'启用' if reload else '停用'}")
    print()
    print("按 Ctrl+C 停止服务。")
    print("=" * 60)
    print()

    try:
        uvicorn.run(
            "api.app:app",
            host=host,
            port=port,
            reload=reload,
            reload_dirs=["api", "staffing"],
            log_level=log_level,
        )
    except KeyboardInterrupt:
        print("\n\n[*] 服务已停止。")
    except Exception as e:
        print(f"\n[ERROR] 服务运行出错: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
