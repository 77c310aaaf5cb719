import asyncio

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from listings_hub.canonical.listing import CandidateListing
from listings_hub.core.config import settings
from listings_hub.models.listing import Listing
from listings_hub.repositories.sql import SqlListingRepository

# Watertown, WI sample inventory
SAMPLE_LISTINGS = [
    ("1929100", "305 Theresa St, Watertown, WI 53094", 324900, "Active",
     "Beautiful 3BR/2BA home with updated kitchen and hardwood floors", 43.1945, -88.7289),
    ("1934327", "228 Fremont St, Watertown, WI 53098", 279900, "Active",
     "Charming 2BR/2BA cottage with fenced yard and deck", 43.2012, -88.7156),
    ("1941234", "1425 N 4th St, Watertown, WI 53094", 425000, "Pending",
     "Spacious 4BR/3BA colonial with 2-car garage and finished basement", 43.1898, -88.7423),
    ("1956789", "567 E Main St, Watertown, WI 53094", 198500, "Sold",
     "Cozy 2BR/1BA starter home with updated electrical", 43.1967, -88.7201),
    ("1965432", "890 S 2nd St, Watertown, WI 53098", 365000, "Active",
     "Modern 3BR/2.5BA townhouse with attached garage", 43.1823, -88.7356),
    ("1978901", "1234 W Cady St, Watertown, WI 53094", 289900, "Active",
     "Well-maintained 3BR/2BA ranch with large lot", 43.2056, -88.7123),
    ("1987654", "456 N 8th St, Watertown, WI 53098", 512000, "Pending",
     "Luxury 4BR/3.5BA home with pool and 3-car garage", 43.1778, -88.7489),
    ("1990123", "789 E Oak St, Watertown, WI 53094", 245000, "Active",
     "Updated 2BR/1.5BA bungalow with new roof and windows", 43.1912, -88.7245),
    ("2003456", "321 S 6th St, Watertown, WI 53098", 398000, "Sold",
     "Stunning 3BR/2BA contemporary with vaulted ceilings", 43.1867, -88.7312),
    ("2016789", "654 W Johnson St, Watertown, WI 53094", 275000, "Active",
     "Cute 2BR/2BA home with updated kitchen and bath", 43.2034, -88.7198),
]


async def main():
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    Session = async_sessionmaker(engine, expire_on_commit=False)

    async with Session() as db:
        repo = SqlListingRepository(db)
        removed = await repo.delete_all()
        print(f"Cleared {removed} existing listings")

        for mls, address, price, status, description, lat, lng in SAMPLE_LISTINGS:
            candidate = CandidateListing(
                mls_number=mls, address=address, price=price, status=status, description=description
            )
            listing = await repo.create(candidate, actor="seed")
            # coordinates come from the geocoder in production; seed data carries them directly
            listing.latitude = lat
            listing.longitude = lng
            await db.commit()

        count = (await db.execute(select(func.count()).select_from(Listing))).scalar_one()
        print(f"Seeded {len(SAMPLE_LISTINGS)} listings; {count} in store")

    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(main())
