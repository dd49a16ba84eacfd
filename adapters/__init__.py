"""
어댑터 레이어

외부 자원(DB) 연동을 담당.
"""
