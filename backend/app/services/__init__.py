"""
예약 도메인 서비스 패키지
- capacity: 출발편 적재량 집계 / 적재 한도 검사
- pricing: 노선 요금, 택배 고정 요금
- status_machine: 예약 상태 전이 규칙
- schedule: 다음 출발편 / 예약 마감 시각
- booking_service: 예약 생성, 상태 변경, 조회 조율
"""
