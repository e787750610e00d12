"""
역 데이터 검증 스크립트.

stations.json / questions.json을 앱과 같은 로더로 읽어서
제외된 역, 카테고리별 특징 분포를 출력한다.

실행: python scripts/verify_stations.py [--data-dir data] [--strict]
"""
import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.catalog import FEATURE_FIELDS, QuestionCatalog, StationCatalog
from src.errors import CatalogError


def summarize(catalog: StationCatalog):
    """카테고리.특징별 min/mean/max 요약 DataFrame"""
    df = catalog.feature_frame()
    columns = [f"{c}.{n}" for c, names in FEATURE_FIELDS.items() for n in names] + ["transport.lines"]
    return df[columns].agg(["min", "mean", "max"]).T.round(2)


def main():
    parser = argparse.ArgumentParser(description="Validate Yamanote station and question datasets")
    parser.add_argument("--data-dir", type=str, default=str(PROJECT_ROOT / "data"), help="Directory holding stations.json / questions.json")
    parser.add_argument("--strict", action="store_true", help="Exit with status 1 if any station was excluded")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    data_dir = Path(args.data_dir)

    try:
        questions = QuestionCatalog.from_json(data_dir / "questions.json")
    except CatalogError as e:
        print(f"[ERROR] 질문 카탈로그 오류: {e}")
        sys.exit(1)

    stations = StationCatalog.from_json(data_dir / "stations.json")

    print("=" * 60)
    print(f"질문: {len(questions)}개 (priority 질문: "
          f"{questions.priority_question.id if questions.priority_question else '없음'})")
    print(f"역: {len(stations)}개 로드, {len(stations.excluded)}개 제외")
    for key in stations.excluded:
        print(f"  - 제외: {key}")
    print("=" * 60)

    if len(stations):
        print(summarize(stations).to_string())

    if args.strict and not stations.is_valid:
        sys.exit(1)


if __name__ == "__main__":
    main()
