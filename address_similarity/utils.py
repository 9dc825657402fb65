from __future__ import annotations

FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")

_CN_DIGITS = {
    "一": 1, "二": 2, "三": 3, "四": 4, "五": 5,
    "六": 6, "七": 7, "八": 8, "九": 9,
}


def parse_road_number(text: str) -> int:
    """提取门牌号中的数字，例如 40号院 -> 40、甲一号 -> 1、三十五号 -> 35。无法识别时返回 0。"""
    if not text:
        return 0

    # 阿拉伯数字（含全角）优先，忽略其它字符直接拼接
    digits = "".join(c for c in text.translate(FULLWIDTH_DIGITS) if "0" <= c <= "9")
    if digits:
        return int(digits)

    # 中文数字，支持 十 / X十 / 十X / X十X
    buf = []
    is_ten = False
    for c in text:
        if is_ten:
            post = c in _CN_DIGITS
            if buf:
                if not post:
                    buf.append("0")
            else:
                buf.append("1" if post else "10")
            is_ten = False
        if c in _CN_DIGITS:
            buf.append(str(_CN_DIGITS[c]))
            continue
        if c == "十":
            is_ten = True
            continue
        if buf:
            break
    if is_ten:
        buf.append("0" if buf else "10")
    return int("".join(buf)) if buf else 0
