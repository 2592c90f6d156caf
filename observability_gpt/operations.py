import logging
import random
from typing import Any, Awaitable, Callable, Dict, Optional

from openai import AsyncOpenAI

from payments_py import StartAgentRequest

from .billing import redeem_credits_from_request, start_agent_request
from .config import Settings
from .observability import build_custom_properties, openai_client_options, with_logging
from .utils import generate_batch_id

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a simulacrum of a mind that provides concise and creative responses."
NO_RESPONSE = "No response generated"
GPT_TEMPERATURE = 0.7
GPT_MAX_TOKENS = 500

IMAGE_WIDTH = 1024
IMAGE_HEIGHT = 576
SIMULATED_IMAGE_URLS = [
    "https://v3.fal.media/files/kangaroo/OyJfXujVSXxPby1bjYe--.png",
    "https://v3.fal.media/files/rabbit/iGjlnk6hZqq5LPtOOSdiu.png",
    "https://v3.fal.media/files/lion/sGrK0XLGX-V2-LOCMN6aW.png",
    "https://v3.fal.media/files/panda/VytitIH7qWYfrXzLvITxi.png",
    "https://v3.fal.media/files/panda/XJb6IFiXFUxxWvn6tyDBl.png",
    "https://v3.fal.media/files/zebra/7sNOX9UH0mLjndayQsIYw.png",
    "https://v3.fal.media/files/lion/Y5MynHlT3LFGUf-BrD6Dd.png",
    "https://v3.fal.media/files/rabbit/EmyU04RwnZGlODQt9z9WZ.png",
    "https://v3.fal.media/files/koala/9cnEfODPJLdoKLiM2_pND.png",
]

SONG_MODEL_VERSION = "chirp-v4"
SONG_QUOTA = 6
SONG_DURATION = 15
SONG_AUDIO_URL = "https://download.samplelib.com/wav/sample-15s.wav"

VIDEO_DURATIONS = (5, 10)
VIDEO_ASPECT_RATIO = "16:9"
VIDEO_MODE = "std"
VIDEO_VERSION = "1.6"
SIMULATED_VIDEO_URLS = [
    "https://download.samplelib.com/mp4/sample-5s.mp4",
    "https://download.samplelib.com/mp4/sample-10s.mp4",
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4",
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ElephantsDream.mp4",
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ForBiggerBlazes.mp4",
]

# builds a chat client from ``openai.AsyncOpenAI`` keyword arguments
LLMFactory = Callable[[Dict[str, Any]], Any]


def calculate_pixels(width: int, height: int) -> int:
    return width * height


def video_model_name(mode: str, duration: int, version: str) -> str:
    return f"piapi/kling-v{version}/text-to-video/{mode}-{duration}s"


async def complete_prompt(llm, model: str, prompt: str) -> str:
    """Single chat completion with the fixed system prompt."""
    completion = await llm.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        temperature=GPT_TEMPERATURE,
        max_tokens=GPT_MAX_TOKENS,
    )
    if completion.choices and completion.choices[0].message.content:
        return completion.choices[0].message.content
    return NO_RESPONSE


class AgentOperations:
    def __init__(self, settings: Settings, payments, llm_factory: Optional[LLMFactory] = None):
        self.settings = settings
        self.payments = payments
        self._llm_factory = llm_factory or (lambda options: AsyncOpenAI(**options))

    async def _run_metered(
        self,
        endpoint: str,
        access_token: str,
        credit_amount: float,
        action: Callable[[StartAgentRequest], Awaitable[Any]],
    ) -> Any:
        url = f"{self.settings.endpoint_base}{endpoint}"
        agent_request = await start_agent_request(self.payments, self.settings.agent_id, access_token, url, "POST")

        result = await action(agent_request)

        # best effort: a failed redemption still returns the result
        await redeem_credits_from_request(
            self.payments, agent_request.agent_request_id, access_token, int(credit_amount)
        )
        return result

    async def call_gpt(
        self, prompt: str, credit_amount: float, access_token: str, batch_id: Optional[str] = None
    ) -> str:
        properties = build_custom_properties(self.settings, "gpt_completion", credit_amount, batch_id)

        async def action(agent_request):
            logger.info(f'Calling GPT with prompt: "{prompt}"')
            options = openai_client_options(self.payments, self.settings.openai_api_key, agent_request, properties)
            try:
                async with self._llm_factory(options) as llm:
                    response = await complete_prompt(llm, self.settings.openai_model, prompt)
            except Exception:
                logger.exception("Error calling OpenAI API")
                raise
            logger.info(f'GPT Response: "{response}"')
            return response

        return await self._run_metered("/gpt", access_token, credit_amount, action)

    async def simulate_song_generation(
        self, prompt: str, credit_amount: float, access_token: str, batch_id: Optional[str] = None
    ) -> Dict[str, Any]:
        logger.info(f'Simulating song generation for: "{prompt}"')
        properties = build_custom_properties(self.settings, "simulated_song_generation", credit_amount, batch_id)

        job_id = f"simulated-job-{random.randint(0, 999999)}"
        request_data = {
            "prompt": prompt,
            "options": {
                "title": "AI Generated Song",
                "tags": ["ai-generated", "simulated"],
                "lyrics": "This is a simulated song for testing purposes",
            },
            "mv": SONG_MODEL_VERSION,
        }

        async def generate():
            return {
                "songResponse": {
                    "jobId": job_id,
                    "music": {
                        "musicId": f"music-{job_id}",
                        "title": "AI Generated Simulated Song",
                        "audioUrl": SONG_AUDIO_URL,
                        "duration": SONG_DURATION,
                    },
                },
                "quota": SONG_QUOTA,
            }

        async def action(agent_request):
            return await with_logging(
                self.payments,
                "SunoClient",
                f"ttapi/suno/{SONG_MODEL_VERSION}",
                {"jobId": job_id, "operation": "fetch_song", "requestData": request_data},
                generate,
                lambda internal: internal["songResponse"],
                lambda internal: self.payments.observability.calculate_song_usage(internal["quota"]),
                "song",
                agent_request,
                properties,
            )

        return await self._run_metered("/song", access_token, credit_amount, action)

    async def simulate_image_generation(
        self, prompt: str, credit_amount: float, access_token: str, batch_id: Optional[str] = None
    ) -> Dict[str, Any]:
        logger.info(f'Simulating image generation for: "{prompt}"')
        properties = build_custom_properties(self.settings, "simulated_image_generation", credit_amount, batch_id)

        async def generate():
            pixels = calculate_pixels(IMAGE_WIDTH, IMAGE_HEIGHT)
            logger.debug(f"Generated image pixels: {pixels}")
            return {
                "imageUrl": random.choice(SIMULATED_IMAGE_URLS),
                "pixels": pixels,
                "width": IMAGE_WIDTH,
                "height": IMAGE_HEIGHT,
            }

        async def action(agent_request):
            return await with_logging(
                self.payments,
                "ImageGeneratorAgent",
                "fal-ai/flux-schnell/text-to-image",
                {
                    "prompt": prompt,
                    "image_size": "landscape_16_9",
                    "num_inference_steps": 4,
                    "num_images": 1,
                    "enable_safety_checker": True,
                },
                generate,
                lambda internal: {
                    "url": internal["imageUrl"],
                    "width": internal["width"],
                    "height": internal["height"],
                    "pixels": internal["pixels"],
                },
                lambda internal: self.payments.observability.calculate_image_usage(internal["pixels"]),
                "img",
                agent_request,
                properties,
            )

        return await self._run_metered("/image", access_token, credit_amount, action)

    async def simulate_video_generation(
        self, prompt: str, credit_amount: float, access_token: str, batch_id: Optional[str] = None
    ) -> Dict[str, Any]:
        duration = random.choice(VIDEO_DURATIONS)
        logger.info(f'Simulating video generation for: "{prompt}" ({duration}s)')
        properties = build_custom_properties(self.settings, "simulated_video_generation", credit_amount, batch_id)

        async def generate():
            return {
                "videoUrl": random.choice(SIMULATED_VIDEO_URLS),
                "duration": duration,
                "aspectRatio": VIDEO_ASPECT_RATIO,
                "mode": VIDEO_MODE,
                "version": VIDEO_VERSION,
            }

        async def action(agent_request):
            return await with_logging(
                self.payments,
                "VideoGeneratorAgent",
                video_model_name(VIDEO_MODE, duration, VIDEO_VERSION),
                {
                    "prompt": prompt,
                    "duration": duration,
                    "mode": VIDEO_MODE,
                    "aspect_ratio": VIDEO_ASPECT_RATIO,
                    "version": VIDEO_VERSION,
                },
                generate,
                lambda internal: {
                    "url": internal["videoUrl"],
                    "duration": internal["duration"],
                    "aspectRatio": internal["aspectRatio"],
                    "mode": internal["mode"],
                    "version": internal["version"],
                },
                lambda internal: self.payments.observability.calculate_video_usage(),
                "video",
                agent_request,
                properties,
            )

        return await self._run_metered("/video", access_token, credit_amount, action)

    async def simulate_combined_generation(
        self, prompt: str, credit_amount: float, access_token: str
    ) -> Dict[str, Any]:
        batch_id = generate_batch_id()
        logger.info(f"Combined generation batch={batch_id}")

        gpt_result = await self.call_gpt(prompt, credit_amount, access_token, batch_id)
        image_result = await self.simulate_image_generation(prompt, credit_amount, access_token, batch_id)
        song_result = await self.simulate_song_generation(prompt, credit_amount, access_token, batch_id)
        video_result = await self.simulate_video_generation(prompt, credit_amount, access_token, batch_id)

        return {
            "gptResult": gpt_result,
            "imageResult": image_result,
            "songResult": song_result,
            "videoResult": video_result,
        }
