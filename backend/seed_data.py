"""
마스터 데이터 시딩 스크립트
- 정기 노선 5개 (daily / weekly / bi-weekly / monthly, 비활성 1개 포함)
- 실행: cd backend && python seed_data.py
"""

import sys
import os

# backend/ 디렉토리 기준으로 app 패키지를 찾을 수 있도록 경로 설정
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.database import engine, SessionLocal, Base
from app.models import Route
from app.models.route import RouteFrequency

# (code, name, origin, destination, frequency, departure, hours,
#  max kg, max m³, max parcels, base, per kg, per m³, active, cutoff)
ROUTES = [
    ("JNB-CPT-01", "Johannesburg → Cape Town Express",
     ("Johannesburg", "12 Main Reef Rd, Denver", -26.2041, 28.0473),
     ("Cape Town", "8 Marine Dr, Paarden Eiland", -33.9249, 18.4241),
     RouteFrequency.DAILY, "08:00 AM", 18, 12000, 60, 400, 2500, 50, 300, True, 24),
    ("JNB-DUR-01", "Johannesburg → Durban Coastal",
     ("Johannesburg", "12 Main Reef Rd, Denver", -26.2041, 28.0473),
     ("Durban", "41 Bayhead Rd, Bayhead", -29.8587, 31.0218),
     RouteFrequency.DAILY, "06:30 PM", 8, 8000, 40, 250, 1800, 40, 250, True, 12),
    ("CPT-PLZ-W1", "Cape Town → Gqeberha Weekly",
     ("Cape Town", "8 Marine Dr, Paarden Eiland", -33.9249, 18.4241),
     ("Gqeberha", "3 Harbour Rd, North End", -33.9608, 25.6022),
     RouteFrequency.WEEKLY, "07:00 AM", 10, 6000, 30, 180, 1500, 35, 220, True, 36),
    ("PTA-BFN-B1", "Pretoria → Bloemfontein Bi-weekly",
     ("Pretoria", "200 Church St, Arcadia", -25.7479, 28.2293),
     ("Bloemfontein", "15 Nelson Mandela Dr", -29.0852, 26.1596),
     RouteFrequency.BI_WEEKLY, "12:00 PM", 6, 5000, 25, 150, 1200, 30, 200, True, 24),
    ("DUR-ELS-M1", "Durban → East London Monthly",
     ("Durban", "41 Bayhead Rd, Bayhead", -29.8587, 31.0218),
     ("East London", "9 Fleet St", -33.0153, 27.9116),
     RouteFrequency.MONTHLY, "09:15 AM", 9, 4000, 20, 120, 1000, 30, 180, False, 48),
]


def seed_routes(session):
    """노선 생성 — 이미 있는 코드는 건너뜀"""
    existing = {code for (code,) in session.query(Route.route_code).all()}
    created = 0
    for (code, name, origin, destination, frequency, departure, hours,
         max_kg, max_m3, max_parcels, base, per_kg, per_m3, active, cutoff) in ROUTES:
        if code in existing:
            continue
        session.add(Route(
            route_code=code,
            name=name,
            origin_city=origin[0],
            origin_address=origin[1],
            origin_lat=origin[2],
            origin_lng=origin[3],
            destination_city=destination[0],
            destination_address=destination[1],
            destination_lat=destination[2],
            destination_lng=destination[3],
            frequency=frequency,
            departure_time=departure,
            estimated_duration_hours=hours,
            max_weight_kg=max_kg,
            max_volume_m3=max_m3,
            max_parcels=max_parcels,
            base_rate=base,
            per_kg_rate=per_kg,
            per_cubic_meter_rate=per_m3,
            is_active=active,
            cutoff_hours=cutoff,
        ))
        created += 1
    return created


def main():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        created = seed_routes(session)
        session.commit()
        print(f"노선 {created}개 생성 완료 (전체 {len(ROUTES)}개 정의)")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
