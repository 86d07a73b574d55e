"""Built-in base-type schema registered by every catalog.

XML Schema's derived built-in types (``integer``, ``token``, ``unsignedByte``
...) are declared here as ordinary restrictions of the primitive types, with
their facets. Primitive types (``string``, ``decimal``, ``dateTime``...) are
deliberately absent: a restriction chain ends when its base can no longer be
found, and the name of that unresolved base is the primitive the chain bottoms
out at.
"""

from __future__ import annotations

from functools import lru_cache

from .models import XS_NAMESPACE
from .schema_tree import parse_xml

BASETYPES_NAMESPACE = XS_NAMESPACE

BASETYPES_XSD = """<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://www.w3.org/2001/XMLSchema"
           elementFormDefault="qualified">

  <!-- string family -->
  <xs:simpleType name="normalizedString">
    <xs:restriction base="xs:string">
      <xs:whiteSpace value="replace"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="token">
    <xs:restriction base="xs:normalizedString">
      <xs:whiteSpace value="collapse"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="language">
    <xs:restriction base="xs:token">
      <xs:pattern value="[a-zA-Z]{1,8}(-[a-zA-Z0-9]{1,8})*"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="NMTOKEN">
    <xs:restriction base="xs:token">
      <xs:pattern value="\\c+"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="NMTOKENS">
    <xs:list itemType="xs:NMTOKEN"/>
  </xs:simpleType>
  <xs:simpleType name="Name">
    <xs:restriction base="xs:token">
      <xs:pattern value="\\i\\c*"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="NCName">
    <xs:restriction base="xs:Name">
      <xs:pattern value="[\\i-[:]][\\c-[:]]*"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="ID">
    <xs:restriction base="xs:NCName"/>
  </xs:simpleType>
  <xs:simpleType name="IDREF">
    <xs:restriction base="xs:NCName"/>
  </xs:simpleType>
  <xs:simpleType name="IDREFS">
    <xs:list itemType="xs:IDREF"/>
  </xs:simpleType>
  <xs:simpleType name="ENTITY">
    <xs:restriction base="xs:NCName"/>
  </xs:simpleType>
  <xs:simpleType name="ENTITIES">
    <xs:list itemType="xs:ENTITY"/>
  </xs:simpleType>

  <!-- decimal family -->
  <xs:simpleType name="integer">
    <xs:restriction base="xs:decimal">
      <xs:fractionDigits value="0" fixed="true"/>
      <xs:pattern value="[\\-+]?[0-9]+"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="nonPositiveInteger">
    <xs:restriction base="xs:integer">
      <xs:maxInclusive value="0"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="negativeInteger">
    <xs:restriction base="xs:nonPositiveInteger">
      <xs:maxInclusive value="-1"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="long">
    <xs:restriction base="xs:integer">
      <xs:minInclusive value="-9223372036854775808"/>
      <xs:maxInclusive value="9223372036854775807"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="int">
    <xs:restriction base="xs:long">
      <xs:minInclusive value="-2147483648"/>
      <xs:maxInclusive value="2147483647"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="short">
    <xs:restriction base="xs:int">
      <xs:minInclusive value="-32768"/>
      <xs:maxInclusive value="32767"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="byte">
    <xs:restriction base="xs:short">
      <xs:minInclusive value="-128"/>
      <xs:maxInclusive value="127"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="nonNegativeInteger">
    <xs:restriction base="xs:integer">
      <xs:minInclusive value="0"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="unsignedLong">
    <xs:restriction base="xs:nonNegativeInteger">
      <xs:maxInclusive value="18446744073709551615"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="unsignedInt">
    <xs:restriction base="xs:unsignedLong">
      <xs:maxInclusive value="4294967295"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="unsignedShort">
    <xs:restriction base="xs:unsignedInt">
      <xs:maxInclusive value="65535"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="unsignedByte">
    <xs:restriction base="xs:unsignedShort">
      <xs:maxInclusive value="255"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="positiveInteger">
    <xs:restriction base="xs:nonNegativeInteger">
      <xs:minInclusive value="1"/>
    </xs:restriction>
  </xs:simpleType>

  <!-- duration / date-time family (XSD 1.1) -->
  <xs:simpleType name="dayTimeDuration">
    <xs:restriction base="xs:duration">
      <xs:pattern value="[^YM]*(T.*)?"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="yearMonthDuration">
    <xs:restriction base="xs:duration">
      <xs:pattern value="[^DT]*"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="dateTimeStamp">
    <xs:restriction base="xs:dateTime">
      <xs:explicitTimezone value="required" fixed="true"/>
    </xs:restriction>
  </xs:simpleType>
</xs:schema>
"""


@lru_cache(maxsize=1)
def basetypes_root():
    """Parse the embedded document once per process and return its root."""
    return parse_xml(BASETYPES_XSD)
