"""
기본 카탈로그 / 플랫폼 설정 시드 스크립트
포인트 액션과 관리자 설정의 초기 행을 생성
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pinapi.database.connection import SessionLocal
from pinapi.database.seed import seed_catalog, seed_settings


def main():
    db = SessionLocal()
    try:
        actions = seed_catalog(db)
        settings_rows = seed_settings(db)
        db.commit()
        print(f"✅ 시드 완료: 액션 {actions}개, 설정 {settings_rows}개 추가")
    except Exception as e:
        db.rollback()
        print(f"❌ 시드 데이터 생성 실패: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
