from __future__ import annotations
import random
from typing import Dict, List

from .models import AddressEntity, RegionEntity, RegionType


"""
结构化地址数据合成器
1. seed_regions()：生成省/市/区县行政区划（含别名），其中一个为市辖虚拟区县；
2. generate_addresses()：在各区县下生成带噪声的结构化地址，模拟历史地址库：
    农村地址：乡镇（可能同时带一个街道）+ 村庄 + 少量剩余文本；
    城市地址：道路 + 门牌号（阿拉伯数字或中文数字）+ 小区/楼栋等剩余文本。
生成结果可写入 Excel 工作簿，再由 cli_build_cache 重建向量缓存文件。
"""

_addr_counter = 0
def _aid() -> int:
    global _addr_counter
    _addr_counter += 1
    return _addr_counter


def seed_regions() -> List[RegionEntity]:
    return [
        RegionEntity(1, "安徽省", RegionType.PROVINCE, None, ["安徽"]),
        RegionEntity(101, "合肥市", RegionType.CITY, 1, ["合肥"]),
        RegionEntity(10101, "蜀山区", RegionType.COUNTY, 101, ["蜀山"]),
        RegionEntity(10102, "肥西县", RegionType.COUNTY, 101, ["肥西"]),
        RegionEntity(108, "中山市", RegionType.CITY, 1, ["中山"]),
        RegionEntity(10801, "中山市", RegionType.CITY_LEVEL_COUNTY, 108, []),
    ]


_RURAL = {
    10102: {
        "towns": ["三河镇", "上派镇", "花岗镇"],
        "streets": ["桃花街道"],
        "villages": ["新河村", "王岗村", "丰乐村", "杨塘村"],
    },
}

_URBAN = {
    10101: {
        "roads": ["创新大道", "科学大道", "文昌路", "永乐北路"],
        "places": ["高新创新园", "蜀峰广场", "名儒学校", "天波小区"],
    },
    10801: {
        "roads": ["兴中道", "孙文中路"],
        "places": ["富华小区", "金钻花园"],
    },
}

_CN_NUMS = ["一", "二", "三", "四", "五", "六", "七", "八", "九", "十", "十一", "十二"]


def generate_addresses(n_per_county: int = 20, seed: int = 7) -> List[AddressEntity]:
    random.seed(seed)
    regions: Dict[int, RegionEntity] = {r.id: r for r in seed_regions()}
    out: List[AddressEntity] = []

    for county_id, pool in _RURAL.items():
        county = regions[county_id]
        city = regions[county.parent_id]
        province = regions[city.parent_id]
        for _ in range(n_per_county):
            towns = [random.choice(pool["towns"])]
            if random.random() < 0.3:
                towns.insert(0, random.choice(pool["streets"]))
            village = random.choice(pool["villages"])
            group = random.choice(_CN_NUMS[:8])
            text = random.choice([f"{group}组", f"{village}{group}组", f"{random.randint(1, 60)}号"])
            out.append(AddressEntity(_aid(), province, city, county, towns, village, "", "", text))

    for county_id, pool in _URBAN.items():
        county = regions[county_id]
        city = regions[county.parent_id]
        province = regions[city.parent_id]
        for _ in range(n_per_county):
            road = random.choice(pool["roads"])
            if random.random() < 0.2:
                road_num = f"{random.choice(_CN_NUMS)}号"
            else:
                road_num = f"{random.choice([8, 18, 66, 88, 110, 120, 188])}号"
            place = random.choice(pool["places"])
            building = random.choice(["A座", "B座", "1栋", "3栋", "5号楼"])
            room = random.choice(["101", "203", "305", "1203", ""])
            out.append(AddressEntity(_aid(), province, city, county, [], "", road, road_num,
                                     f"{place}{building}{room}"))
    return out
