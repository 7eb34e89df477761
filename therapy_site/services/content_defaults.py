"""Fallback copy for editable page sections; stored entries are merged over these."""

DEFAULT_HOME_CONTENT = {
    "hero": {
        "badge": "Türkiye'nin Güvenilir Terapi Merkezi",
        "title": "Çocuğunuzun",
        "highlight": "Potansiyelini",
        "titleSuffix": "Birlikte Keşfedelim",
        "description": (
            "Duyusal bütünleme, otizm, ADHD ve disleksi alanlarında uzman kadromuzla "
            "çocuğunuzun gelişimine bilimsel ve sevgi dolu bir yaklaşım sunuyoruz."
        ),
        "achievements": [
            "30+ Yıl Devlet Deneyimi",
            "10.000+ Mutlu Aile",
            "Bilimsel Terapi Yaklaşımları",
        ],
        "primaryCta": {"label": "Ücretsiz Değerlendirme", "href": "/degerlendirme"},
        "secondaryCta": {"label": "Tanıtım Videosu", "href": "#video"},
        "backgroundImage": {"src": "/images/hero-bg.jpg", "alt": "Terapi ortamı"},
    },
    "stats": {
        "items": [
            {"icon": "clock", "value": 30, "suffix": "+", "label": "Yıl Deneyim"},
            {"icon": "users", "value": 5000, "suffix": "+", "label": "Tedavi Edilen Çocuk"},
            {"icon": "heart", "value": 98, "suffix": "%", "label": "Memnuniyet Oranı"},
        ]
    },
    "problems": {
        "title": "Çocuğunuzda Bunları",
        "highlight": "Gözlemliyor Musunuz?",
        "items": [
            {"icon": "eye", "title": "Göz Teması Kurmakta Zorluk"},
            {"icon": "ear", "title": "Seslere Aşırı Hassasiyet"},
            {"icon": "book", "title": "Okuma-Yazma Güçlükleri"},
        ],
    },
}

DEFAULT_ABOUT_CONTENT = {
    "title": "Hakkımda",
    "intro": "30 yılı aşkın deneyimle çocukların gelişim yolculuğunda ailelerin yanındayım.",
    "highlights": ["Duyusal bütünleme", "Otizm", "ADHD", "Disleksi"],
}

DEFAULT_SERVICES_PAGE_CONTENT = {
    "title": "Hizmetlerimiz",
    "description": "Çocuğunuzun ihtiyacına göre planlanan bireysel terapi programları.",
}

DEFAULT_BOOKING_CONTENT = {
    "title": "Randevu Al",
    "description": "Size uygun gün ve saati seçerek randevunuzu oluşturun.",
    "successMessage": "Randevu talebiniz alındı. En kısa sürede sizinle iletişime geçeceğiz.",
}

DEFAULT_ASSESSMENT_CONTENT = {
    "title": "Ücretsiz Ön Değerlendirme",
    "description": "Birkaç soruyu yanıtlayarak çocuğunuz için ön değerlendirme alın.",
}

DEFAULT_THERAPY_CONTENT = {
    "title": "Terapi Süreci",
    "steps": [
        {"title": "Ön Görüşme", "description": "Ailenin gözlemleri ve çocuğun geçmişi dinlenir."},
        {"title": "Değerlendirme", "description": "Standart testlerle gelişim profili çıkarılır."},
        {"title": "Terapi Programı", "description": "Bireysel hedeflerle seanslar planlanır."},
    ],
}

DEFAULT_CONTACT_CONTENT = {
    "title": "İletişim",
    "description": "Sorularınız için bize yazın, en kısa sürede dönüş yapalım.",
}

DEFAULT_BLOG_CONTENT = {
    "title": "Blog",
    "description": "Çocuk gelişimi ve terapi üzerine yazılar.",
}

CONTENT_DEFAULTS = {
    "home": DEFAULT_HOME_CONTENT,
    "about": DEFAULT_ABOUT_CONTENT,
    "services-page": DEFAULT_SERVICES_PAGE_CONTENT,
    "booking": DEFAULT_BOOKING_CONTENT,
    "assessment": DEFAULT_ASSESSMENT_CONTENT,
    "therapy": DEFAULT_THERAPY_CONTENT,
    "contact": DEFAULT_CONTACT_CONTENT,
    "blog": DEFAULT_BLOG_CONTENT,
}
