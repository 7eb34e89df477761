"""Pre-assessment analysis of intake answers through a hosted language model."""
import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
from sqlalchemy.orm import Session

from therapy_site.config.settings import AIConfig
from therapy_site.models.database import Assessment
from therapy_site.models.response import AssessmentAnalysis

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Sen pediatrik gelişim uzmanı bir asistansın. Ailelerin çocukları hakkında verdikleri bilgileri "
    "analiz ederek, duyusal bütünleme, dikkat eksikliği, otizm spektrum belirtileri ve öğrenme "
    "güçlükleri açısından değerlendirme yapıyorsun. ÖNEMLİ: Bu bir ön değerlendirmedir, kesin tanı "
    "değildir. Her zaman profesyonel değerlendirme öner. Yanıtlarını Türkçe ver ve ailelerle sıcak, "
    "anlayışlı bir dil kullan."
)

# score name -> (heading keyword in the answer, value used when the answer has none)
SCORE_SECTIONS = {
    "sensory": ("DUYUSAL", 70),
    "attention": ("DİKKAT", 65),
    "social": ("SOSYAL", 75),
    "learning": ("ÖĞRENME", 70),
    "motor": ("MOTOR", 80),
}


class AnalysisError(Exception):
    """No provider produced an answer"""


class AnalysisNotConfigured(AnalysisError):
    """Neither OPENROUTER_API_KEY nor GOOGLE_AI_API_KEY is set"""


def build_analysis_prompt(answers: Dict[str, Any]) -> str:
    def value(key: str, default: str = "") -> Any:
        found = answers.get(key)
        return found if found not in (None, "") else default

    concern_areas = answers.get("concernAreas") or []
    return f"""Aşağıdaki bilgilere göre çocuk için bir ön değerlendirme yap:

## Genel Bilgiler
- Çocuğun Yaşı: {value('childAge')}
- Cinsiyeti: {value('childGender')}
- Önceki tanı/şüphe: {value('previousDiagnosis', 'Yok')}
- Endişe alanları: {', '.join(str(area) for area in concern_areas) or 'Belirtilmedi'}

## Duyusal Gözlemler (1-4 ölçeği, 1=hiç, 4=çok sık)
- Seslere hassasiyet: {value('soundSensitivity')}/4
- Dokunmaya hassasiyet: {value('touchSensitivity')}/4
- Göz teması: {value('eyeContact')}/4
- Yerinde oturmada zorluk: {value('sittingDifficulty')}/4
- Kaygı düzeyi: {value('anxietyLevel')}/4
- Harf karıştırma: {value('letterConfusion')}/4

## Detaylı Gözlemler
- Oyun davranışı: {value('playBehavior')}
- Rutin değişikliklerine tepki: {value('routineReaction')}
- Motor beceriler: {value('motorSkills')}
- Öğretmen geri bildirimi: {value('teacherFeedback', 'Yok')}
- Ana endişe: {value('mainConcern')}

Lütfen şu formatta analiz yap:
1. DUYUSAL İŞLEMLEME SKORU (0-100)
2. DİKKAT/ODAKLANMA SKORU (0-100)
3. SOSYAL ETKİLEŞİM SKORU (0-100)
4. ÖĞRENME BECERİLERİ SKORU (0-100)
5. MOTOR GELİŞİM SKORU (0-100)

Her alan için kısa açıklama ve önerilen hizmetleri belirt.
Genel değerlendirme özeti ve aciliyet düzeyi (düşük/orta/yüksek) ver."""


def extract_score(text: str, keyword: str) -> Optional[int]:
    """First number after the keyword, e.g. "DUYUSAL İŞLEMLEME SKORU: 62" -> 62"""
    match = re.search(rf"{re.escape(keyword)}[^0-9]*([0-9]+)", text, re.IGNORECASE)
    return int(match.group(1)) if match else None


def determine_urgency(scores: Dict[str, int]) -> str:
    average = sum(scores.values()) / len(scores)
    if average < 50:
        return "high"
    if average < 70:
        return "medium"
    return "low"


def parse_analysis(text: str) -> AssessmentAnalysis:
    # a missing or zero score falls back to the section default
    scores = {
        name: extract_score(text, keyword) or default
        for name, (keyword, default) in SCORE_SECTIONS.items()
    }
    return AssessmentAnalysis(scores=scores, recommendations=text, urgency=determine_urgency(scores))


def save_analysis(db: Session, assessment: Assessment, analysis: AssessmentAnalysis) -> None:
    assessment.ai_analysis = analysis.scores
    assessment.ai_recommendations = analysis.recommendations
    assessment.status = "COMPLETED"
    assessment.completed_at = datetime.utcnow()
    db.commit()


class AssessmentAnalyzer:
    """
    OpenRouter first (each configured model in turn), Gemini as the fallback.
    Provider errors propagate once every option is exhausted.
    """

    def __init__(self, ai_config: AIConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = ai_config
        self._client = client

    async def _post(self, url: str, payload: dict, headers: dict) -> dict:
        if self._client is not None:
            resp = await self._client.post(url, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                resp = await client.post(url, json=payload, headers=headers)
        resp.raise_for_status()
        return resp.json()

    async def _openrouter(self, prompt: str) -> str:
        url = f"{self.config.openrouter_url.rstrip('/')}/chat/completions"
        headers = {"Authorization": f"Bearer {self.config.openrouter_api_key}"}
        last_error: Optional[Exception] = None

        for model in self.config.openrouter_models:
            try:
                data = await self._post(
                    url,
                    {
                        "model": model,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": prompt},
                        ],
                        "temperature": 0.7,
                        "max_tokens": 2000,
                    },
                    headers,
                )
                return data["choices"][0]["message"].get("content") or ""
            except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
                logger.info(f"Model {model} failed, trying next: {e}")
                last_error = e

        raise last_error or AnalysisError("No OpenRouter models configured")

    async def _gemini(self, prompt: str) -> str:
        url = f"{self.config.google_url.rstrip('/')}/models/{self.config.google_model}:generateContent"
        data = await self._post(
            url,
            {"contents": [{"role": "user", "parts": [{"text": SYSTEM_PROMPT}, {"text": prompt}]}]},
            {"x-goog-api-key": self.config.google_api_key},
        )
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError) as e:
            raise AnalysisError(f"Unexpected Gemini response: {e}") from e
        return "".join(part.get("text", "") for part in parts)

    async def complete(self, prompt: str) -> str:
        if self.config.openrouter_api_key:
            try:
                return await self._openrouter(prompt)
            except Exception as e:
                if not self.config.google_api_key:
                    raise
                logger.warning(f"OpenRouter failed, trying Google AI: {e}")
            return await self._gemini(prompt)

        if self.config.google_api_key:
            return await self._gemini(prompt)
        raise AnalysisNotConfigured("No AI API key configured")

    async def analyze(self, answers: Dict[str, Any]) -> AssessmentAnalysis:
        return parse_analysis(await self.complete(build_analysis_prompt(answers)))
