"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- accounts: 계좌 및 잔액 점검
- categories / tags / assets: 카탈로그
- transactions: 일반 거래
- investment_transactions: 투자 거래
- recurring: 반복 규칙
- portfolio: 보유 현황
- debts: 채무/채권과 상환 기록
- budgets: 월 예산
- reports: 월간 요약, 예산 사용률, 순자산 추이, 투자 성과
"""
