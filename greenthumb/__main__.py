"""
Command-line front end for the plant assistant

Usage:
    python -m greenthumb identify leaf.jpg --save
    python -m greenthumb diagnose leaf.jpg --zip 94043 --products
    python -m greenthumb garden --search fern
    python -m greenthumb garden --remove 1712345678901
    python -m greenthumb chat
"""
import sys
import asyncio
import logging
import argparse
from pathlib import Path

from greenthumb.config import LOG_LEVEL
from greenthumb.models import ImageSegment
from greenthumb.services.chat_session import segments_of
from greenthumb.services.garden_store import GardenStore
from greenthumb.services.orchestrator import PlantAssistant

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def read_image(path: str) -> bytes:
    file_path = Path(path)
    if not file_path.exists():
        print(f"❌ File not found: {path}")
        sys.exit(1)
    return file_path.read_bytes()


def print_banner(title: str) -> None:
    print("=" * 60)
    print(title)
    print("=" * 60)


def render_reply(text: str) -> str:
    parts = []
    for segment in segments_of(text):
        if isinstance(segment, ImageSegment):
            parts.append(f"[image: {segment.alt or 'untitled'}] {segment.url}")
        else:
            parts.append(segment)
    return "".join(parts)


# ============================================================================#
# Subcommands
# ============================================================================#
async def run_identify(assistant: PlantAssistant, args) -> int:
    image = read_image(args.image)
    print_banner("🌱 Identifying plant...")
    plant = await assistant.identify(image)
    if plant is None:
        print(f"❌ {assistant.identification.error}")
        return 1

    print(f"{plant.name} ({plant.scientific_name})")
    print(f"\n{plant.description}\n")
    print(f"💧 Water:       {plant.care.water}")
    print(f"☀️  Light:       {plant.care.light}")
    print(f"🪴 Soil:        {plant.care.soil}")
    print(f"🌡️  Temperature: {plant.care.temperature}")
    print(f"\n✨ Fun fact: {plant.fun_fact}")

    if assistant.is_saved(plant):
        print("\n✅ Already in your garden")
    elif args.save:
        saved = await assistant.save_identified()
        if saved is None:
            print(f"❌ {assistant.garden.error}")
            return 1
        print(f"\n✅ Saved to your garden (id {saved.id})")
    return 0


async def run_diagnose(assistant: PlantAssistant, args) -> int:
    image = read_image(args.image)
    print_banner("🩺 Diagnosing plant...")
    result = await assistant.diagnose(image, args.zip or "")
    if assistant.diagnosis.location_error:
        print(f"❌ {assistant.diagnosis.location_error}")
        return 2
    if result is None:
        print(f"❌ {assistant.diagnosis.error}")
        return 1

    print(f"Status: {result.health_status.value}")
    print(f"\n{result.diagnosis}")
    if result.symptoms:
        print("\nSymptoms:")
        for symptom in result.symptoms:
            print(f"   • {symptom}")
    if result.treatment:
        print("\nTreatment:")
        for i, step in enumerate(result.treatment, 1):
            print(f"   {i}. {step}")
    print(f"\nPrevention: {result.prevention}")

    if not assistant.can_search_products:
        return 0
    if not args.products:
        print("\n💡 Run again with --products to find treatment products")
        return 0

    print("\n🔎 Searching for treatment products...")
    search = await assistant.search_products()
    if search is None:
        return 0
    if not search.products:
        print(search.raw_text or "No products found.")
    for i, product in enumerate(search.products):
        print(f"\n{i + 1}. {product.name} - {product.display_price}")
        if product.description:
            print(f"   {product.description}")
        link = search.product_link(i)
        if link:
            print(f"   🔗 {link}")
    titles = search.source_titles()
    if titles:
        print(f"\nSources: {', '.join(titles)}")
    return 0


async def run_garden(assistant: PlantAssistant, args) -> int:
    if assistant.garden.error:
        print(f"❌ {assistant.garden.error}")
        return 1

    if args.remove:
        if not await assistant.remove(args.remove):
            print(f"❌ {assistant.garden.error}")
            return 1
        print(f"✅ Removed {args.remove}")
        return 0

    plants = assistant.garden.search(args.search or "")
    print_banner(f"🪴 My Garden ({len(plants)} plants)")
    if not plants:
        print("Your garden is empty." if not args.search else f"No plants match '{args.search}'.")
    for plant in plants:
        print(f"   {plant.id}  {plant.name} ({plant.scientific_name})")
    return 0


async def run_chat(assistant: PlantAssistant, args) -> int:
    print_banner("💬 Greenthumb chat (empty line or Ctrl+D to quit)")
    for message in assistant.chat.messages:
        print(f"Greenthumb: {render_reply(message.text)}")

    while True:
        try:
            text = await asyncio.to_thread(input, "\nYou: ")
        except EOFError:
            break
        if not text.strip():
            break
        reply = await assistant.send_message(text)
        print(f"\nGreenthumb: {render_reply(reply.text)}")
        if reply.grounding_metadata:
            for chunk in reply.grounding_metadata.sources():
                print(f"   🔗 {chunk.title or chunk.uri}: {chunk.uri}")
    return 0


COMMANDS = {
    "identify": run_identify,
    "diagnose": run_diagnose,
    "garden": run_garden,
    "chat": run_chat,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="greenthumb", description="AI gardening assistant")
    parser.add_argument("--db", type=str, help="Path to the garden database")
    subparsers = parser.add_subparsers(dest="command", required=True)

    identify = subparsers.add_parser("identify", help="Identify a plant from a photo")
    identify.add_argument("image", help="Path to the plant photo")
    identify.add_argument("--save", action="store_true", help="Save the plant to your garden")

    diagnose = subparsers.add_parser("diagnose", help="Diagnose plant health from a photo")
    diagnose.add_argument("image", help="Path to the plant photo")
    diagnose.add_argument("--zip", type=str, help="US zip code for regional advice")
    diagnose.add_argument("--products", action="store_true", help="Search for treatment products")

    garden = subparsers.add_parser("garden", help="List, search or remove saved plants")
    garden.add_argument("--search", type=str, help="Filter by common or scientific name")
    garden.add_argument("--remove", type=str, metavar="ID", help="Remove a saved plant")

    subparsers.add_parser("chat", help="Chat with the gardening assistant")
    return parser


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    store = GardenStore(args.db) if args.db else None
    assistant = PlantAssistant(store=store)
    try:
        await assistant.start()
        return await COMMANDS[args.command](assistant, args)
    finally:
        await assistant.gateway.close()


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
