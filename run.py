"""
Yamanote Finder 웹앱 진입점
실행: python run.py
접속: http://localhost:8000/docs
"""
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

REQUIRED_DATA = ["questions.json", "stations.json"]


def check_data(data_dir: Path) -> bool:
    """데이터 파일 확인"""
    missing = [name for name in REQUIRED_DATA if not (data_dir / name).exists()]
    if missing:
        print(f"[ERROR] 데이터 파일이 없습니다: {', '.join(missing)} ({data_dir})")
        print("YAMANOTE_DATA_DIR 환경변수를 확인하세요.")
        return False
    return True


def main():
    """메인 실행 함수"""
    print("=" * 60)
    print("Yamanote Finder - 라이프스타일 진단 기반 야마노테선 역 추천")
    print("=" * 60)
    print()

    # .env가 있으면 환경 변수로 로드
    load_dotenv()

    data_dir = Path(os.getenv("YAMANOTE_DATA_DIR", "data"))
    if not check_data(data_dir):
        sys.exit(1)

    # 서버 설정
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "True").lower() == "true"

    url = f"http://{host}:{port}"

    print(f"[*] 서버 주소: {url}  (API 문서: {url}/docs)")
    print(f"[*] 데이터 디렉토리: {data_dir.resolve()}")
    print(f"[*] 자동 재시작: {'활성화' if reload else '비활성화'}")
    print()
    print("서버를 중지하려면 Ctrl+C를 누르세요.")
    print("=" * 60)
    print()

    try:
        uvicorn.run(
            "api.app:app",
            host=host,
            port=port,
            reload=reload,
            reload_dirs=["api", "src"],
            log_level=os.getenv("LOG_LEVEL", "info").lower(),
        )
    except KeyboardInterrupt:
        print("\n\n[*] 서버를 종료합니다.")


if __name__ == "__main__":
    main()
