"""Session transcription and evaluation using the OpenAI API."""

import json
import wave

import structlog
from openai import AsyncOpenAI

from tutor_dashboard.models.session import SessionReport
from tutor_dashboard.recording.encoder import from_data_uri, split_wav

logger = structlog.get_logger()

# Transcription uploads are capped at 25 MB; stay under it with header room
MAX_UPLOAD_BYTES = 24 * 1024 * 1024

_WAV_TYPES = {"audio/wav", "audio/x-wav"}

_EXTENSIONS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/webm": "webm",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/ogg": "ogg",
}

EVALUATION_SYSTEM_PROMPT = """\
You are an expert English teacher's assistant. You will receive the transcript \
of a teaching session between a teacher and a student. Your goal is to create a \
detailed "study guide" from the conversation.

First, rewrite the transcript with the speakers labelled "Teacher:" and "Student:".

Second, using the transcript, write a study guide titled \
"Organizing the contents of the class". Its purpose is for the student to review \
what they learned. Keep it well-structured and easy to read with line breaks, \
and focus on the core concepts rather than repeating the transcript. Include:
1. **Learning Topic**: the main topic of the lesson \
(e.g. "Using prepositions 'in', 'on', and 'at'").
2. **Key Concepts**: the rules or concepts the teacher explained, synthesized \
into clear points.
3. **Q&A Breakdown**: an error-correction note. For each question the teacher \
asked: the question, the student's answer, whether it was correct, a brief \
analysis of why, and a better alternative if the answer was wrong or could be improved.

Respond ONLY with a JSON object:
{
    "transcript": "<speaker-labelled transcript>",
    "evaluation": "<study guide>"
}
"""


class AnalysisError(Exception):
    """The analysis service returned no usable transcript or evaluation."""


class SessionAnalyzer:
    """Transcribes a recorded session and writes an evaluation of it.

    Args:
        api_key: OpenAI API key.
        transcription_model: Speech-to-text model.
        evaluation_model: Chat model for the study guide.
        client: Pre-built client (mainly for tests).
        max_upload_bytes: Largest audio file sent in one transcription request.
    """

    def __init__(
        self,
        api_key: str,
        transcription_model: str = "whisper-1",
        evaluation_model: str = "gpt-4o-mini",
        client: AsyncOpenAI | None = None,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
    ):
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.transcription_model = transcription_model
        self.evaluation_model = evaluation_model
        self.max_upload_bytes = max_upload_bytes

    async def _transcribe(self, mime_type: str, audio: bytes) -> str:
        """Transcribe audio, uploading long WAV recordings in segments."""
        filename = f"session.{_EXTENSIONS.get(mime_type, 'wav')}"
        segments = [audio]
        if mime_type in _WAV_TYPES:
            try:
                segments = split_wav(audio, self.max_upload_bytes)
            except (wave.Error, EOFError) as exc:
                raise AnalysisError("Recording is not a readable WAV file") from exc
        if len(segments) > 1:
            logger.info("session_audio_split", segments=len(segments), size=len(audio))

        texts = []
        for segment in segments:
            transcription = await self.client.audio.transcriptions.create(
                model=self.transcription_model,
                file=(filename, segment, mime_type),
            )
            text = (transcription.text or "").strip()
            if text:
                texts.append(text)
        return "\n".join(texts)

    async def analyze(self, audio_data_uri: str) -> SessionReport:
        """Analyze one recorded session.

        Args:
            audio_data_uri: ``data:<mime>;base64,<audio>``.

        Returns:
            SessionReport with both transcript and evaluation set.

        Raises:
            ValueError: If the data URI is malformed.
            AnalysisError: If either field is missing from the result.
            openai.OpenAIError: On API failures.
        """
        mime_type, audio = from_data_uri(audio_data_uri)
        raw_transcript = await self._transcribe(mime_type, audio)
        if not raw_transcript:
            raise AnalysisError("Transcription returned no text")
        logger.info("session_transcribed", characters=len(raw_transcript))

        response = await self.client.chat.completions.create(
            model=self.evaluation_model,
            messages=[
                {"role": "system", "content": EVALUATION_SYSTEM_PROMPT},
                {"role": "user", "content": f"Transcript:\n{raw_transcript}"},
            ],
            temperature=0.3,
            response_format={"type": "json_object"},
        )

        try:
            result = json.loads(response.choices[0].message.content or "")
        except json.JSONDecodeError as exc:
            raise AnalysisError("The model failed to return a valid analysis.") from exc
        if not isinstance(result, dict):
            raise AnalysisError("The model failed to return a valid analysis.")

        report = SessionReport(
            transcript=str(result.get("transcript") or ""),
            evaluation=str(result.get("evaluation") or ""),
        )
        if not report.is_complete:
            raise AnalysisError("The model failed to return a valid analysis.")
        logger.info("session_analysis_complete")
        return report
