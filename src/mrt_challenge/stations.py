"""Singapore MRT station data and the canonical station catalog."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Iterable, Optional

from .guess_index import GuessIndex
from .lines import LineGroup, group_by_line

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawStationRecord:
    """One row of station data: a single service code."""
    code: str
    english: str
    pinyin: str
    chinese: str
    abbreviation: Optional[str] = None


@dataclass(frozen=True)
class Station:
    """A canonical station. Interchanges carry every code in ``codes``."""
    id: str
    english_name: str
    pinyin_name: str
    chinese_name: str
    codes: tuple[str, ...]
    abbreviation: Optional[str] = None

    @property
    def is_interchange(self) -> bool:
        return len(self.codes) > 1


# Bundled station table
# Format: code, English, Pinyin, Chinese, abbreviation ("" when none)
STATIONS_DATA = [
    # East West Line
    ("EW1", "Pasir Ris", "Ba Xi Li", "巴西立", "PSR"),
    ("EW2", "Tampines", "Dan Bin Ni", "淡滨尼", "TAM"),
    ("EW3", "Simei", "Si Mei", "四美", "SIM"),
    ("EW4", "Tanah Merah", "Dan Na Mei La", "丹那美拉", "TNM"),
    ("EW5", "Bedok", "Wu Luo", "勿洛", "BDK"),
    ("EW6", "Kembangan", "Jing Wan An", "景万岸", "KEM"),
    ("EW7", "Eunos", "You Nuo Shi", "友诺士", "EUN"),
    ("EW8", "Paya Lebar", "Ba Ye Li Ba", "巴耶利峇", "PYL"),
    ("EW9", "Aljunied", "A Yu Ni", "阿裕尼", "ALJ"),
    ("EW10", "Kallang", "Jia Leng", "加冷", "KAL"),
    ("EW11", "Lavender", "Lao Ming Da", "劳明达", "LVR"),
    ("EW12", "Bugis", "Wu Ji Shi", "武吉士", "BGS"),
    ("EW13", "City Hall", "Zheng Fu Da Sha", "政府大厦", "CTH"),
    ("EW14", "Raffles Place", "Lai Fo Shi Fang", "莱佛士坊", "RFP"),
    ("EW15", "Tanjong Pagar", "Dan Rong Ba Ge", "丹戎巴葛", "TPG"),
    ("EW16", "Outram Park", "Ou Nan Yuan", "欧南园", "OTP"),
    ("EW17", "Tiong Bahru", "Zhong Ba Lu", "中峇鲁", "TIB"),
    ("EW18", "Redhill", "Hong Shan", "红山", "RDH"),
    ("EW19", "Queenstown", "Nv Huang Zhen", "女皇镇", "QUE"),
    ("EW20", "Commonwealth", "Lian Bang", "联邦", "COM"),
    ("EW21", "Buona Vista", "Bo Na Wei Si Da", "波那维斯达", "BNV"),
    ("EW22", "Dover", "Du Fu", "杜弗", "DVR"),
    ("EW23", "Clementi", "Jin Wen Tai", "金文泰", "CLE"),
    ("EW24", "Jurong East", "Yu Lang Dong", "裕廊东", "JUR"),
    ("EW25", "Chinese Garden", "Yu Hua Yuan", "裕华园", "CNG"),
    ("EW26", "Lakeside", "Hu Pan", "湖畔", "LKS"),
    ("EW27", "Boon Lay", "Wen Li", "文礼", "BNL"),
    ("EW28", "Pioneer", "Xian Qu", "先驱", "PNR"),
    ("EW29", "Joo Koon", "Yu Qun", "裕群", "JKN"),
    ("EW30", "Gul Circle", "Ka Er Quan", "卡尔圈", "GCL"),
    ("EW31", "Tuas Crescent", "Da Shi Wan", "大士弯", "TCR"),
    ("EW32", "Tuas West Road", "Da Shi Xi Lu", "大士西路", "TWR"),
    ("EW33", "Tuas Link", "Da Shi Lian Lu", "大士连路", "TLK"),

    # Changi Airport Branch Line
    ("CG1", "Expo", "Bo Lan", "博览", "XPO"),
    ("CG2", "Changi Airport", "Zhang Yi Ji Chang", "樟宜机场", "CGA"),

    # North South Line
    ("NS1", "Jurong East", "Yu Lang Dong", "裕廊东", "JUR"),
    ("NS2", "Bukit Batok", "Wu Ji Ba Du", "武吉巴督", "BBT"),
    ("NS3", "Bukit Gombak", "Wu Ji Gan Bai", "武吉甘柏", "BGB"),
    ("NS4", "Choa Chu Kang", "Cai Cuo Gang", "蔡厝港", "CCK"),
    ("NS5", "Yew Tee", "You Chi", "油池", "YWT"),
    ("NS7", "Kranji", "Ke Lan Zhi", "克兰芝", "KRJ"),
    ("NS8", "Marsiling", "Ma Xi Ling", "马西岭", "MSL"),
    ("NS9", "Woodlands", "Wu Lan", "兀兰", "WDL"),
    ("NS10", "Admiralty", "Hai Jun Bu", "海军部", "ADM"),
    ("NS11", "Sembawang", "San Ba Wang", "三巴旺", "SBW"),
    ("NS12", "Canberra", "Kan Bei La", "坎贝拉", "CBR"),
    ("NS13", "Yishun", "Yi Shun", "义顺", "YIS"),
    ("NS14", "Khatib", "Ka Di", "卡迪", "KTB"),
    ("NS15", "Yio Chu Kang", "Yang Cuo Gang", "杨厝港", "YCK"),
    ("NS16", "Ang Mo Kio", "Hong Mao Qiao", "宏茂桥", "AMK"),
    ("NS17", "Bishan", "Bi Shan", "碧山", "BSH"),
    ("NS18", "Braddell", "Bu Lai De", "布莱德", "BDL"),
    ("NS19", "Toa Payoh", "Da Ba Yao", "大巴窑", "TAP"),
    ("NS20", "Novena", "Nuo Wei Na", "诺维娜", "NOV"),
    ("NS21", "Newton", "Niu Dun", "纽顿", "NEW"),
    ("NS22", "Orchard", "Wu Jie", "乌节", "ORC"),
    ("NS23", "Somerset", "Suo Mei Sai", "索美塞", "SOM"),
    ("NS24", "Dhoby Ghaut", "Duo Mei Ge", "多美歌", "DBG"),
    ("NS25", "City Hall", "Zheng Fu Da Sha", "政府大厦", "CTH"),
    ("NS26", "Raffles Place", "Lai Fo Shi Fang", "莱佛士坊", "RFP"),
    ("NS27", "Marina Bay", "Bin Hai Wan", "滨海湾", "MRB"),
    ("NS28", "Marina South Pier", "Bin Hai Nan Ma Tou", "滨海南码头", "MSP"),

    # North East Line
    ("NE1", "HarbourFront", "Gang Wan", "港湾", "HBF"),
    ("NE3", "Outram Park", "Ou Nan Yuan", "欧南园", "OTP"),
    ("NE4", "Chinatown", "Niu Che Shui", "牛车水", "CNT"),
    ("NE5", "Clarke Quay", "Ke La Ma Tou", "克拉码头", "CQY"),
    ("NE6", "Dhoby Ghaut", "Duo Mei Ge", "多美歌", "DBG"),
    ("NE7", "Little India", "Xiao Yin Du", "小印度", "LTI"),
    ("NE8", "Farrer Park", "Hua La Gong Yuan", "花拉公园", "FRP"),
    ("NE9", "Boon Keng", "Wen Qing", "文庆", "BNK"),
    ("NE10", "Potong Pasir", "Bo Dong Ba Xi", "波东巴西", "PTP"),
    ("NE11", "Woodleigh", "Wu Li", "兀里", "WLH"),
    ("NE12", "Serangoon", "Shi Long Gang", "实龙岗", "SER"),
    ("NE13", "Kovan", "Gao Wen", "高文", "KVN"),
    ("NE14", "Hougang", "Hou Gang", "后港", "HGN"),
    ("NE15", "Buangkok", "Wan Guo", "万国", "BGK"),
    ("NE16", "Sengkang", "Sheng Gang", "盛港", "SKG"),
    ("NE17", "Punggol", "Bang E", "榜鹅", "PGL"),
    ("NE18", "Punggol Coast", "Bang E Hai An", "榜鹅海岸", ""),

    # Circle Line
    ("CC1", "Dhoby Ghaut", "Duo Mei Ge", "多美歌", "DBG"),
    ("CC2", "Bras Basah", "Bai Sheng", "百胜", ""),
    ("CC3", "Esplanade", "Bin Hai Zhong Xin", "滨海中心", ""),
    ("CC4", "Promenade", "Bao Men Lang", "宝门廊", ""),
    ("CC5", "Nicoll Highway", "Ni Gao Da Dao", "尼诰大道", ""),
    ("CC6", "Stadium", "Ti Yu Chang", "体育场", ""),
    ("CC7", "Mountbatten", "Meng Ba Deng", "蒙巴登", ""),
    ("CC8", "Dakota", "Da Ke Da", "达科达", ""),
    ("CC9", "Paya Lebar", "Ba Ye Li Ba", "巴耶利峇", "PYL"),
    ("CC10", "MacPherson", "Mai Bo Shen", "麦波申", ""),
    ("CC11", "Tai Seng", "Da Cheng", "大成", ""),
    ("CC12", "Bartley", "Ba Te Li", "巴特礼", ""),
    ("CC13", "Serangoon", "Shi Long Gang", "实龙岗", "SER"),
    ("CC14", "Lorong Chuan", "Luo Nong Quan", "罗弄泉", ""),
    ("CC15", "Bishan", "Bi Shan", "碧山", "BSH"),
    ("CC16", "Marymount", "Ma Li Meng", "玛丽蒙", ""),
    ("CC17", "Caldecott", "Jia Li Gu", "加利谷", ""),
    ("CC19", "Botanic Gardens", "Zhi Wu Yuan", "植物园", ""),
    ("CC20", "Farrer Road", "Hua La Lu", "花拉路", ""),
    ("CC21", "Holland Village", "He Lan Cun", "荷兰村", ""),
    ("CC22", "Buona Vista", "Bo Na Wei Si Da", "波那维斯达", "BNV"),
    ("CC23", "one-north", "Wei Yi", "纬壹", ""),
    ("CC24", "Kent Ridge", "Ken Te Gang", "肯特岗", ""),
    ("CC25", "Haw Par Villa", "Hu Bao Bie Shu", "虎豹别墅", ""),
    ("CC26", "Pasir Panjang", "Ba Xi Ban Rang", "巴西班让", ""),
    ("CC27", "Labrador Park", "La Bo Duo Gong Yuan", "拉柏多公园", ""),
    ("CC28", "Telok Blangah", "Zhi Luo Bu Lan Ya", "直落布兰雅", ""),
    ("CC29", "HarbourFront", "Gang Wan", "港湾", "HBF"),
    ("CE1", "Bayfront", "Hai Wan Fang", "海湾舫", ""),
    ("CE2", "Marina Bay", "Bin Hai Wan", "滨海湾", "MRB"),

    # Downtown Line
    ("DT1", "Bukit Panjang", "Wu Ji Ban Rang", "武吉班让", ""),
    ("DT2", "Cashew", "Kai Su", "凯苏", ""),
    ("DT3", "Hillview", "Shan Jing", "山景", ""),
    ("DT5", "Beauty World", "Mei Shi Jie", "美世界", ""),
    ("DT6", "King Albert Park", "A Er Bo Wang Yuan", "阿尔柏王园", ""),
    ("DT7", "Sixth Avenue", "Di Liu Dao", "第六道", ""),
    ("DT8", "Tan Kah Kee", "Chen Jia Geng", "陈嘉庚", ""),
    ("DT9", "Botanic Gardens", "Zhi Wu Yuan", "植物园", ""),
    ("DT10", "Stevens", "Shi Di Fen", "史蒂芬", ""),
    ("DT11", "Newton", "Niu Dun", "纽顿", "NEW"),
    ("DT12", "Little India", "Xiao Yin Du", "小印度", "LTI"),
    ("DT13", "Rochor", "Wu Cao", "梧槽", ""),
    ("DT14", "Bugis", "Wu Ji Shi", "武吉士", "BGS"),
    ("DT15", "Promenade", "Bao Men Lang", "宝门廊", ""),
    ("DT16", "Bayfront", "Hai Wan Fang", "海湾舫", ""),
    ("DT17", "Downtown", "Shi Zhong Xin", "市中心", ""),
    ("DT18", "Telok Ayer", "Zhi Luo Ya Yi", "直落亚逸", ""),
    ("DT19", "Chinatown", "Niu Che Shui", "牛车水", "CNT"),
    ("DT20", "Fort Canning", "Fu Kang Ning", "福康宁", ""),
    ("DT21", "Bencoolen", "Ming Gu Lian", "明古连", ""),
    ("DT22", "Jalan Besar", "Re Lan Wu Sha", "惹兰勿刹", ""),
    ("DT23", "Bendemeer", "Ming Di Mi Ya", "明地迷亚", ""),
    ("DT24", "Geylang Bahru", "Ya Long Ba Lu", "芽笼峇鲁", ""),
    ("DT25", "Mattar", "Ma Da", "玛达", ""),
    ("DT26", "MacPherson", "Mai Bo Shen", "麦波申", ""),
    ("DT27", "Ubi", "Wu Mei", "乌美", ""),
    ("DT28", "Kaki Bukit", "Jia Ji Wu Ji", "加基武吉", ""),
    ("DT29", "Bedok North", "Wu Luo Bei", "勿洛北", ""),
    ("DT30", "Bedok Reservoir", "Wu Luo Xu Shui Chi", "勿洛蓄水池", ""),
    ("DT31", "Tampines West", "Dan Bin Ni Xi", "淡滨尼西", ""),
    ("DT32", "Tampines", "Dan Bin Ni", "淡滨尼", "TAM"),
    ("DT33", "Tampines East", "Dan Bin Ni Dong", "淡滨尼东", ""),
    ("DT34", "Upper Changi", "Zhang Yi Shang Duan", "樟宜上段", ""),
    ("DT35", "Expo", "Bo Lan", "博览", "XPO"),

    # Thomson-East Coast Line
    ("TE1", "Woodlands North", "Wu Lan Bei", "兀兰北", ""),
    ("TE2", "Woodlands", "Wu Lan", "兀兰", "WDL"),
    ("TE3", "Woodlands South", "Wu Lan Nan", "兀兰南", ""),
    ("TE4", "Springleaf", "Chun Ye", "春叶", ""),
    ("TE5", "Lentor", "Lun Duo", "伦多", ""),
    ("TE6", "Mayflower", "Mei Hua", "美华", ""),
    ("TE7", "Bright Hill", "Guang Ming Shan", "光明山", ""),
    ("TE8", "Upper Thomson", "Tang Shen Lu Shang Duan", "汤申路上段", ""),
    ("TE9", "Caldecott", "Jia Li Gu", "加利谷", ""),
    ("TE11", "Stevens", "Shi Di Fen", "史蒂芬", ""),
    ("TE12", "Napier", "Na Bi Ya", "纳比雅", ""),
    ("TE13", "Orchard Boulevard", "Wu Jie Lin Yin Dao", "乌节林荫道", ""),
    ("TE14", "Orchard", "Wu Jie", "乌节", "ORC"),
    ("TE15", "Great World", "Da Shi Jie", "大世界", ""),
    ("TE16", "Havelock", "He Luo", "合洛", ""),
    ("TE17", "Outram Park", "Ou Nan Yuan", "欧南园", "OTP"),
    ("TE18", "Maxwell", "Mai Shi Wei", "麦士威", ""),
    ("TE19", "Shenton Way", "Shan Dun Dao", "珊顿道", ""),
    ("TE20", "Marina Bay", "Bin Hai Wan", "滨海湾", "MRB"),
    ("TE22", "Gardens by the Bay", "Bin Hai Wan Hua Yuan", "滨海湾花园", ""),
    ("TE23", "Tanjong Rhu", "Dan Rong Yu", "丹戎禺", ""),
    ("TE24", "Katong Park", "Jia Dong Gong Yuan", "加东公园", ""),
    ("TE25", "Tanjong Katong", "Dan Rong Jia Dong", "丹戎加东", ""),
    ("TE26", "Marine Parade", "Ma Lin Bai Lie", "马林百列", ""),
    ("TE27", "Marine Terrace", "Ma Lin Tai", "马林台", ""),
    ("TE28", "Siglap", "Shi Qi Na", "实乞纳", ""),
    ("TE29", "Bayshore", "Bi Wan", "碧湾", ""),
]

CSV_FIELDS = (
    "stn_code",
    "mrt_station_english",
    "mrt_station_pinyin",
    "mrt_station_chinese",
    "abbreviation",
)


def _record(code, english, pinyin, chinese, abbreviation=None) -> RawStationRecord:
    abbreviation = (abbreviation or "").strip() or None
    return RawStationRecord(
        code=code.strip(),
        english=english.strip(),
        pinyin=pinyin.strip(),
        chinese=chinese.strip(),
        abbreviation=abbreviation,
    )


def _read_csv(path: Path) -> list[RawStationRecord]:
    records = []
    with open(path, encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        missing = [c for c in CSV_FIELDS[:4] if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"missing columns: {', '.join(missing)}")
        for row in reader:
            if not (row.get("stn_code") or "").strip():
                continue
            if not (row.get("mrt_station_english") or "").strip():
                logger.warning("Skipping station %s with no English name", row["stn_code"].strip())
                continue
            records.append(_record(
                row["stn_code"],
                row["mrt_station_english"] or "",
                row["mrt_station_pinyin"] or "",
                row["mrt_station_chinese"] or "",
                row.get("abbreviation"),
            ))
    return records


def load_raw_records(path: Optional[str | Path] = None) -> list[RawStationRecord]:
    """Load raw station records.

    Args:
        path: CSV file to read. When omitted the bundled table is used.

    Returns:
        The records in file order, or an empty list if the source could
        not be read.
    """
    if path is None:
        return [_record(*row) for row in STATIONS_DATA]

    try:
        records = _read_csv(Path(path))
    except (OSError, UnicodeDecodeError, ValueError, csv.Error) as e:
        logger.error("Could not load station data from %s: %s", path, e)
        return []

    logger.info("Loaded %d station records from %s", len(records), path)
    return records


def build_catalog(records: Iterable[RawStationRecord]) -> list[Station]:
    """Fold raw records into canonical stations.

    Every record sharing an English name receives the full code list of
    that name. Stations are then deduplicated by id, first occurrence wins.
    """
    records = list(records)

    # Group all codes by their English name
    codes_by_name: dict[str, list[str]] = {}
    for record in records:
        codes = codes_by_name.setdefault(record.english, [])
        if record.code not in codes:
            codes.append(record.code)

    processed = [
        Station(
            id=record.code,
            english_name=record.english,
            pinyin_name=record.pinyin,
            chinese_name=record.chinese,
            codes=tuple(codes_by_name[record.english]),
            abbreviation=record.abbreviation or None,
        )
        for record in records
    ]

    unique: dict[str, Station] = {}
    for station in processed:
        unique.setdefault(station.id, station)

    return list(unique.values())


class StationCatalog:
    """The immutable set of canonical stations with its derived views."""

    def __init__(self, stations: Iterable[Station]):
        self.stations: tuple[Station, ...] = tuple(stations)
        self._by_id = {s.id: s for s in self.stations}

    @classmethod
    def from_records(cls, records: Iterable[RawStationRecord]) -> StationCatalog:
        return cls(build_catalog(records))

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> StationCatalog:
        """Build a catalog from the bundled table or a CSV file."""
        catalog = cls.from_records(load_raw_records(path))
        if catalog.is_empty:
            logger.warning("Station catalog is empty, the game will be disabled")
        return catalog

    @cached_property
    def total(self) -> int:
        """Number of distinct stations (English names)."""
        return len({s.english_name for s in self.stations})

    @property
    def is_empty(self) -> bool:
        return not self.stations

    @cached_property
    def guess_index(self) -> GuessIndex:
        return GuessIndex.build(self.stations)

    @cached_property
    def line_groups(self) -> tuple[LineGroup, ...]:
        return group_by_line(self.stations)

    def get(self, code: str) -> Optional[Station]:
        """Get a station by its code."""
        return self._by_id.get(code)

    def __iter__(self):
        return iter(self.stations)

    def __len__(self):
        return len(self.stations)
