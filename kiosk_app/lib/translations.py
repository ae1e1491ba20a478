from .constants import LocationType, VisitorCategory

TRANSLATIONS = {
    'en': {
        'nav_checkin': "Check-in",
        'nav_analytics': "Analytics",
        'nav_logs': "Logs",
        'subtitle': "Museum & Gallery",
        'welcome': "Welcome to Artemis",
        'select_category': "Please choose your venue and category to check in.",
        'museum': "Museum",
        'gallery': "Arts Gallery",
        'student_login': "Student Check-in",
        'visitor_login': "Visitor Check-in",
        'group_login': "Group Visit",
        'group_name': "Group / school name",
        'group_size': "Number of people",
        'group_submit': "Check in group",
        'daily_reset': "Ticket numbers reset daily at midnight",
        'tracking_enabled': "Visitor tracking enabled",
        'analytics': "Analytics",
        'overview': "Visitor overview",
        'all_locations': "All Locations",
        'daily': "Today",
        'weekly': "This Week",
        'monthly': "This Month",
        'yearly': "This Year",
        'all_time': "All Time",
        'dist_by_location': "Distribution by Location",
        'visitor_split': "Visitor Split",
        'students': "Students",
        'visitors': "Visitors",
        'groups': "Groups",
        'visit_logs': "Visit Logs",
        'log_desc': "Every check-in recorded at this kiosk.",
        'download': "Download CSV",
        'date_time': "Date & Time",
        'date': "Date",
        'time': "Time",
        'location': "Location",
        'category': "Category",
        'seq': "No.",
        'group': "Group",
        'no_data': "No visits recorded yet.",
        'staff_access': "Staff Access",
        'enter_passcode': "Enter the staff passcode to export visit logs.",
        'passcode': "Passcode",
        'invalid_passcode': "Invalid passcode",
        'cancel': "Cancel",
        'confirm': "Confirm",
        'checkin_success': "Check-in Successful",
        'welcome_to': "Welcome to the",
        'ticket_number': "Your ticket number",
        'close_ticket': "Done",
        'staff_only': "Staff only",
        'error': "Something went wrong, please ask a member of staff.",
        'invalid_group': "Please enter a number of people of at least 1.",
    },
    'ms': {
        'nav_checkin': "Daftar Masuk",
        'nav_analytics': "Analitik",
        'nav_logs': "Log",
        'subtitle': "Muzium & Galeri",
        'welcome': "Selamat Datang ke Artemis",
        'select_category': "Sila pilih lokasi dan kategori anda untuk daftar masuk.",
        'museum': "Muzium",
        'gallery': "Galeri Seni",
        'student_login': "Daftar Masuk Pelajar",
        'visitor_login': "Daftar Masuk Pelawat",
        'group_login': "Lawatan Berkumpulan",
        'group_name': "Nama kumpulan / sekolah",
        'group_size': "Bilangan orang",
        'group_submit': "Daftar masuk kumpulan",
        'daily_reset': "Nombor tiket ditetapkan semula setiap hari pada tengah malam",
        'tracking_enabled': "Penjejakan pelawat diaktifkan",
        'analytics': "Analitik",
        'overview': "Gambaran keseluruhan pelawat",
        'all_locations': "Semua Lokasi",
        'daily': "Hari Ini",
        'weekly': "Minggu Ini",
        'monthly': "Bulan Ini",
        'yearly': "Tahun Ini",
        'all_time': "Sepanjang Masa",
        'dist_by_location': "Taburan mengikut Lokasi",
        'visitor_split': "Pecahan Pelawat",
        'students': "Pelajar",
        'visitors': "Pelawat",
        'groups': "Lawatan",
        'visit_logs': "Log Lawatan",
        'log_desc': "Setiap daftar masuk yang direkodkan di kiosk ini.",
        'download': "Muat Turun CSV",
        'date_time': "Tarikh & Masa",
        'date': "Tarikh",
        'time': "Masa",
        'location': "Lokasi",
        'category': "Kategori",
        'seq': "No.",
        'group': "Kumpulan",
        'no_data': "Tiada lawatan direkodkan lagi.",
        'staff_access': "Akses Kakitangan",
        'enter_passcode': "Masukkan kod laluan kakitangan untuk mengeksport log lawatan.",
        'passcode': "Kod laluan",
        'invalid_passcode': "Kod laluan tidak sah",
        'cancel': "Batal",
        'confirm': "Sahkan",
        'checkin_success': "Daftar Masuk Berjaya",
        'welcome_to': "Selamat datang ke",
        'ticket_number': "Nombor tiket anda",
        'close_ticket': "Selesai",
        'staff_only': "Kakitangan sahaja",
        'error': "Ralat berlaku, sila hubungi kakitangan.",
        'invalid_group': "Sila masukkan bilangan orang sekurang-kurangnya 1.",
    },
}

CATEGORY_KEYS = {
    VisitorCategory.STUDENT: 'students',
    VisitorCategory.VISITOR: 'visitors',
    VisitorCategory.GROUP: 'groups',
}

LOCATION_KEYS = {
    LocationType.MUSEUM: 'museum',
    LocationType.ARTS_GALLERY: 'gallery',
}


def translate(key: str, language: str = 'en') -> str:
    """Label for `key` in `language`, falling back to English, then to the key itself."""
    table = TRANSLATIONS.get(language, TRANSLATIONS['en'])
    return table.get(key) or TRANSLATIONS['en'].get(key, key)


def category_label(category, language: str = 'en') -> str:
    return translate(CATEGORY_KEYS[VisitorCategory(category)], language)


def location_label(location, language: str = 'en') -> str:
    return translate(LOCATION_KEYS[LocationType(location)], language)
