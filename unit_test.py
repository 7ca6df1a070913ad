import unittest

from cache import CacheKey, ResultCache
from fakes import place
from models import DOCTOR, HOSPITAL, CareProvider, Location
from normalizer import (
    classify_hospital_type,
    classify_specialty,
    classify_title,
    default_working_hours,
    normalize_place,
    normalize_places,
    parse_working_hours,
    split_doctor_name,
    strip_honorifics,
)
from ranking import haversine_km, rank_providers, with_distances
from vocabulary import ADDRESS_PLACEHOLDER, GENERIC_PROVIDER_NAME, PHONE_PLACEHOLDER, fold


def make_provider(name, distance=None, rating=None):
    return CareProvider(
        id=name,
        kind=DOCTOR,
        display_name=name,
        title="Dr.",
        specialty="general pediatrics",
        affiliation=name,
        address="",
        phone="",
        location=Location(41.0, 29.0),
        working_hours=default_working_hours(),
        rating=rating,
        distance_km=distance,
    )


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestNormalizer(unittest.TestCase):
    def test_records_without_coordinates_are_dropped(self):
        print("==Testing records without coordinates...")

        records = [
            place("Dr. Ayşe Yılmaz", lat=41.0, lon=29.0),
            place("No location", lat=None, lon=None),
            {"displayName": {"text": "Bad lat"}, "location": {"latitude": "abc", "longitude": 29.0}},
            {"displayName": {"text": "Half"}, "location": {"latitude": 41.0}},
            {"displayName": {"text": "Out of range"}, "location": {"latitude": 141.0, "longitude": 29.0}},
            "not a dict",
        ]

        providers = normalize_places(records, DOCTOR)

        assert len(providers) == 1
        assert len(providers) <= len(records)
        assert all(p.location is not None for p in providers)
        assert normalize_place(place("x", lat=None, lon=None), HOSPITAL) is None

    def test_name_split(self):
        print("==Testing name splitting...")

        print("====Testing name split [doctor - hospital]...")
        assert split_doctor_name("Dr. Ayşe Yılmaz - Acıbadem Hastanesi") == ("Ayşe Yılmaz", "Acıbadem Hastanesi")

        print("====Testing name split [Dr. prefix on a medical center]...")
        name = "Dr. ÖZEL İLGİ ÇOCUK TIP MERKEZİ"
        assert split_doctor_name(name) == (GENERIC_PROVIDER_NAME, name)

        print("====Testing name split [hospital without a person]...")
        assert split_doctor_name("Acıbadem Maslak Hastanesi") == (GENERIC_PROVIDER_NAME, "Acıbadem Maslak Hastanesi")

        print("====Testing name split [no title on the left part]...")
        assert split_doctor_name("Ayşe Yılmaz - Acıbadem Hastanesi") == (GENERIC_PROVIDER_NAME, "Acıbadem Hastanesi")

        print("====Testing name split [both parts are institutions]...")
        name = "Medicana Kliniği - Ataşehir Hastanesi"
        assert split_doctor_name(name) == (GENERIC_PROVIDER_NAME, name)

        print("====Testing name split [private practice]...")
        name = "Dr. Mehmet Kaya Muayenehanesi"
        assert split_doctor_name(name) == ("Mehmet Kaya", name)

        print("====Testing name split [private practice without a name]...")
        name = "Özel Muayenehane"
        assert split_doctor_name(name) == (GENERIC_PROVIDER_NAME, name)

        print("====Testing name split [plain doctor]...")
        name = "Doktor Ahmet Demir"
        assert split_doctor_name(name) == ("Ahmet Demir", name)
        assert split_doctor_name("Dr. Can Aksoy - Moda") == ("Can Aksoy", "Moda")

        print("====Testing name split [unrecognised]...")
        assert split_doctor_name("Güneş Eczanesi") == (GENERIC_PROVIDER_NAME, "Güneş Eczanesi")
        assert split_doctor_name("Dr. Al") == (GENERIC_PROVIDER_NAME, "Dr. Al")

    def test_strip_honorifics(self):
        assert strip_honorifics("Prof. Dr. Ali Veli") == "Ali Veli"
        assert strip_honorifics("Doç.Dr. Ali Veli") == "Ali Veli"
        assert strip_honorifics("dr. ali veli") == "ali veli"
        assert strip_honorifics("Ali Veli") == "Ali Veli"

    def test_turkish_case_folding(self):
        assert "tıp merkezi" in fold("TIP MERKEZİ")
        assert "hospital" in fold("HOSPITAL")

    def test_specialty(self):
        print("==Testing specialty classification...")

        assert classify_specialty("Dr. Ali Göz Hastalıkları") == "pediatric ophthalmology"
        assert classify_specialty("Çocuk Doktoru") == "general pediatrics"
        assert classify_specialty("Dr. Ayşe Yılmaz") == "general pediatrics"
        assert classify_specialty("Pediatric Cardiology Center") == "pediatric cardiology"
        assert classify_specialty("Çocuk Nöroloji Kliniği") == "pediatric neurology"
        assert classify_specialty("ÇOCUK CERRAHİSİ") == "pediatric surgery"
        # Eye wins over heart because it comes first in the table
        assert classify_specialty("Göz ve Kalp Merkezi") == "pediatric ophthalmology"

    def test_hospital_type(self):
        assert classify_hospital_type("Koç Üniversitesi Hastanesi") == "general & research hospital"
        assert classify_hospital_type("Kadıköy Devlet Hastanesi") == "state hospital"
        assert classify_hospital_type("Özel Memorial Hastanesi") == "private hospital"
        assert classify_hospital_type("Haydarpaşa Numune Eğitim ve Araştırma Hastanesi") == "training & research hospital"
        assert classify_hospital_type("Amerikan Hastanesi") == "general hospital"

    def test_title(self):
        assert classify_title("Prof. Dr. Mehmet Kaya") == "Prof. Dr."
        assert classify_title("Doç. Dr. Mehmet Kaya") == "Doç. Dr."
        assert classify_title("Uzman Doktor Mehmet Kaya") == "Uzm. Dr."
        assert classify_title("Dr. Mehmet Kaya") == "Dr."
        assert classify_title("Mehmet Kaya") == "Dr."

    def test_working_hours(self):
        print("==Testing working hours parsing...")

        print("====Testing working hours [missing]...")
        for hours in (parse_working_hours(None), parse_working_hours([])):
            assert len(hours) == 7
            assert [h.is_open for h in hours] == [True] * 5 + [False] * 2
            assert hours[0].day == "Monday" and hours[0].start_time == "09:00" and hours[0].end_time == "17:00"
            assert hours[6].day == "Sunday" and hours[6].start_time == ""

        print("====Testing working hours [Google text]...")
        hours = parse_working_hours([
            "Monday: 9:00 AM – 5:00 PM",
            "Tuesday: Closed",
            "Wednesday: Open 24 hours",
            "Perşembe: Kapalı",
            "Friday: 08:30 – 12:00",
            "Saturday",
            "Sunday: Closed",
        ])
        assert len(hours) == 7
        assert (hours[0].start_time, hours[0].end_time, hours[0].is_open) == ("9:00 AM", "5:00 PM", True)
        assert not hours[1].is_open and hours[1].start_time == "" and hours[1].end_time == ""
        assert (hours[2].start_time, hours[2].end_time, hours[2].is_open) == ("09:00", "17:00", True)
        assert not hours[3].is_open
        assert (hours[4].start_time, hours[4].end_time) == ("08:30", "12:00")
        assert hours[5].is_open and hours[5].start_time == "09:00"
        assert not hours[6].is_open

        print("====Testing working hours [short list]...")
        hours = parse_working_hours(["Monday: 10:00 – 14:00"])
        assert len(hours) == 7
        assert hours[0].start_time == "10:00"
        assert hours[1].start_time == "09:00" and hours[6].is_open is False

    def test_normalize_doctor(self):
        print("==Testing doctor normalization...")

        record = place(
            "Prof. Dr. Ali Veli - Memorial Hastanesi",
            lat=41.01, lon=29.0, rating=4.6, place_id="ChIJ123",
            formattedAddress="Piyale Paşa Blv. No:4, Şişli/İstanbul",
            internationalPhoneNumber="+90 212 314 66 66",
            userRatingCount=120,
            types=["doctor", "health"],
        )
        provider = normalize_place(record, DOCTOR, Location(41.0, 29.0))

        assert provider.id == "ChIJ123"
        assert provider.kind == DOCTOR
        assert provider.display_name == "Ali Veli"
        assert provider.affiliation == "Memorial Hastanesi"
        assert provider.title == "Prof. Dr."
        assert provider.specialty == "general pediatrics"
        assert provider.phone == "+90 212 314 66 66"
        assert provider.review_count == 120
        assert provider.rating == 4.6
        assert provider.accepts_appointments is True
        assert provider.types == ["doctor", "health"]
        assert len(provider.working_hours) == 7
        self.assertAlmostEqual(provider.distance_km, 1.112, places=2)

    def test_normalize_generic_doctor_has_no_title(self):
        provider = normalize_place(place("Dr. ÖZEL İLGİ ÇOCUK TIP MERKEZİ"), DOCTOR)

        assert provider.display_name == GENERIC_PROVIDER_NAME
        assert provider.affiliation == "Dr. ÖZEL İLGİ ÇOCUK TIP MERKEZİ"
        assert provider.title == ""
        assert provider.distance_km is None
        assert provider.address == ADDRESS_PLACEHOLDER
        assert provider.phone == PHONE_PLACEHOLDER
        assert provider.id  # generated when Google sends none

    def test_normalize_hospital(self):
        provider = normalize_place(place("Kadıköy Devlet Hastanesi", rating=7.5, userRatingCount=-3), HOSPITAL)

        assert provider.display_name == "Kadıköy Devlet Hastanesi"
        assert provider.affiliation == "Kadıköy Devlet Hastanesi"
        assert provider.title == ""
        assert provider.specialty == "state hospital"
        assert provider.rating == 5.0
        assert provider.review_count is None

    def test_normalize_unknown_kind(self):
        with self.assertRaises(ValueError):
            normalize_place(place("x"), "pharmacy")


class TestRanking(unittest.TestCase):
    def test_rank_by_distance(self):
        print("==Testing ranking by distance...")

        providers = [make_provider("a", distance=5), make_provider("b", distance=1), make_provider("c", distance=3)]
        ranked = rank_providers(providers, Location(41.0, 29.0))

        assert [p.distance_km for p in ranked] == [1, 3, 5]
        assert [p.id for p in providers] == ["a", "b", "c"]  # input untouched

    def test_rank_by_rating(self):
        print("==Testing ranking by rating...")

        providers = [make_provider("a", rating=3.0), make_provider("b", rating=4.5), make_provider("c", rating=4.0)]
        ranked = rank_providers(providers)

        assert [p.rating for p in ranked] == [4.5, 4.0, 3.0]

    def test_missing_values_and_ties(self):
        providers = [
            make_provider("none"),
            make_provider("first", distance=2, rating=4.0),
            make_provider("second", distance=2, rating=4.0),
        ]

        assert [p.id for p in rank_providers(providers, Location(0, 0))] == ["first", "second", "none"]
        assert [p.id for p in rank_providers(providers)] == ["first", "second", "none"]

    def test_with_distances(self):
        providers = [make_provider("far"), make_provider("near")]
        providers[0].location = Location(41.05, 29.0)
        providers[1].location = Location(41.01, 29.0)

        measured = with_distances(providers, Location(41.0, 29.0))
        ranked = rank_providers(measured, Location(41.0, 29.0))

        assert [p.id for p in ranked] == ["near", "far"]
        assert providers[0].distance_km is None  # copies, not the originals
        self.assertAlmostEqual(measured[1].distance_km, 1.112, places=2)

    def test_haversine(self):
        assert haversine_km(41.0, 29.0, 41.0, 29.0) == 0
        # Istanbul -> Ankara is roughly 350 km
        assert 340 < haversine_km(41.0082, 28.9784, 39.9334, 32.8597) < 360


class TestCache(unittest.TestCase):
    def test_ttl(self):
        print("==Testing cache expiry...")

        clock = FakeClock()
        cache = ResultCache(clock=clock)
        key = CacheKey.build(DOCTOR, 41.0, 29.0, 3000)
        providers = [make_provider("a")]

        cache.put(key, providers, "token-2")

        clock.now = 299.0
        entry = cache.get(key)
        assert entry is not None
        assert list(entry.providers) == providers and entry.next_page_token == "token-2"

        clock.now = 300.0
        assert cache.get(key) is not None

        clock.now = 300.5
        assert cache.get(key) is None
        # Expired entries are not swept on read
        assert len(cache) == 1

        cache.put(key, [], None)
        assert cache.get(key).providers == ()

    def test_entries_do_not_follow_the_caller(self):
        cache = ResultCache()
        key = CacheKey.build(DOCTOR, 41.0, 29.0, 3000)
        providers = [make_provider("a")]

        cache.put(key, providers)
        providers[0].display_name = "changed"
        providers.append(make_provider("b"))

        entry = cache.get(key)
        assert [p.display_name for p in entry.providers] == ["a"]

    def test_key_rounding(self):
        a = CacheKey.build(DOCTOR, 41.000012, 29.000049, 3000.04)
        b = CacheKey.build(DOCTOR, 41.0, 29.0, 3000.0)
        c = CacheKey.build(HOSPITAL, 41.0, 29.0, 3000.0)
        d = CacheKey.build(DOCTOR, 41.0, 29.0, 3000.0, "göz")

        assert a == b
        assert a != c
        assert b != d

    def test_clear(self):
        cache = ResultCache()
        cache.put(CacheKey.build(DOCTOR, 1, 2, 3), [])
        cache.put(CacheKey.build(HOSPITAL, 1, 2, 3), [])

        cache.clear()

        assert len(cache) == 0
        assert cache.get(CacheKey.build(DOCTOR, 1, 2, 3)) is None


if __name__ == "__main__":
    unittest.main()
